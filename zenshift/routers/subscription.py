from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from zenshift.core.errors import UpstreamError
from zenshift.schemas import CheckoutIn
from zenshift.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscription", tags=["subscription"])
logger = logging.getLogger(__name__)


def _service(request: Request) -> SubscriptionService:
    return request.app.state.subscription_service


@router.post("/create-checkout-session")
def create_checkout_session(payload: CheckoutIn, request: Request):
    try:
        url = _service(request).initiate_checkout(payload.user_id, payload.plan)
    except UpstreamError as exc:
        logger.error("Checkout failed for user %s: %s", payload.user_id, exc.message)
        return JSONResponse({"message": "Stripe error", "error": exc.message}, status_code=500)
    return {"url": url}


@router.post("/webhook")
async def webhook(request: Request):
    # Signature is computed over the exact bytes Stripe sent.
    raw_body = await request.body()
    await run_in_threadpool(_service(request).apply_webhook, raw_body, request.headers.get("stripe-signature"))
    return {"received": True}


@router.get("/status")
def subscription_status(request: Request, user_id: str = Query(..., alias="userId", min_length=1)):
    snapshot = _service(request).get_status(user_id)
    return {"subscription": snapshot.to_dict()}
