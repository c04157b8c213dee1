from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from zenshift.db.models import User
from zenshift.schemas import ProfileUpdateIn
from zenshift.services.session_service import require_user
from zenshift.services.user_service import UserService, public_user

router = APIRouter(prefix="/users", tags=["users"])


def _service(request: Request) -> UserService:
    return request.app.state.user_service


@router.get("/me")
def get_me(user: User = Depends(require_user)):
    return {"user": public_user(user)}


@router.put("/me")
def update_me(payload: ProfileUpdateIn, request: Request, user: User = Depends(require_user)):
    updated = _service(request).update_profile(
        user.id,
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return {"message": "Profile updated", "user": public_user(updated)}


@router.delete("/me")
def delete_me(request: Request, user: User = Depends(require_user)):
    _service(request).delete_account(user.id)
    return {"message": "Account deleted"}
