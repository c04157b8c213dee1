from __future__ import annotations

from fastapi import APIRouter

from zenshift.core.errors import UpstreamError, ValidationError
from zenshift.core.mailer import send_email
from zenshift.schemas import SendEmailIn

router = APIRouter(prefix="/email", tags=["email"])


@router.post("/send")
def send(payload: SendEmailIn):
    if not (payload.text or payload.html):
        raise ValidationError("Either text or html content is required")
    if not send_email(payload.subject, payload.to, payload.html, payload.text):
        raise UpstreamError("Failed to send email")
    return {"message": "Email sent successfully"}
