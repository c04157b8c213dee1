from __future__ import annotations

import json
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool

from zenshift.core.errors import ValidationError
from zenshift.core.rate_limiter import rate_limited
from zenshift.core.security import new_token, token_matches
from zenshift.core.utils import absolute_url
from zenshift.schemas import EmailIn, LoginIn, RegisterIn, ResetPasswordIn, VerifyEmailIn
from zenshift.services.auth_service import AuthService
from zenshift.services.session_service import issue_session, token_from_request
from zenshift.services.social_service import OAuthProvider

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

STATE_COOKIE_NAME = "oauth_state"
FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent"


def _auth(request: Request) -> AuthService:
    return request.app.state.auth_service


def _provider(request: Request, name: str) -> OAuthProvider:
    return request.app.state.oauth_providers[name]


@router.post(
    "/register",
    status_code=201,
    dependencies=[Depends(rate_limited("register", limit=10, window_seconds=3600))],
)
def register(payload: RegisterIn, request: Request):
    result = _auth(request).register(payload.name, payload.email, payload.password)
    return {
        "message": "User registered successfully. Please check your email to verify your account.",
        "emailSent": result.email_sent,
    }


@router.post("/login", dependencies=[Depends(rate_limited("login", limit=20, window_seconds=300))])
def login(payload: LoginIn, request: Request):
    result = _auth(request).login(payload.email, payload.password)
    user = result.user
    return {
        "message": "Login successful",
        "token": result.session_token,
        "user": {"id": user.id, "name": user.name, "email": user.email},
    }


@router.post("/logout")
def logout(request: Request):
    _auth(request).logout(token_from_request(request))
    return {"message": "Logged out"}


@router.post("/verify-email")
def verify_email(payload: VerifyEmailIn, request: Request):
    user = _auth(request).verify_email(payload.email, payload.token)
    return {
        "message": "Email verification successful",
        "user": {"id": user.id, "email": user.email, "isEmailVerified": bool(user.is_email_verified)},
    }


@router.post(
    "/resend-verification",
    dependencies=[Depends(rate_limited("resend-verification", limit=5, window_seconds=900))],
)
def resend_verification(payload: EmailIn, request: Request):
    _auth(request).resend_verification(payload.email)
    return {"message": "If the account exists and is not verified, a new verification email has been sent"}


@router.post(
    "/forgot-password",
    dependencies=[Depends(rate_limited("forgot-password", limit=5, window_seconds=900))],
)
def forgot_password(payload: EmailIn, request: Request):
    _auth(request).issue_password_reset(payload.email)
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
def reset_password(payload: ResetPasswordIn, request: Request):
    user = _auth(request).reset_password(payload.email, payload.token, payload.password)
    return {"message": "Password reset successful", "user": {"id": user.id, "email": user.email}}


# -------------------------------------- social sign-in --------------------------------------
def _start(request: Request, name: str) -> RedirectResponse:
    state = new_token()
    response = RedirectResponse(_provider(request, name).authorization_url(state), status_code=302)
    response.set_cookie(
        STATE_COOKIE_NAME,
        state,
        max_age=600,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return response


async def _finish(request: Request, name: str, code: str, state: str) -> RedirectResponse:
    if not token_matches(state, request.cookies.get(STATE_COOKIE_NAME)):
        raise ValidationError("Invalid OAuth state")
    profile = await _provider(request, name).fetch_profile(code)
    user = await run_in_threadpool(request.app.state.social_auth_service.link_profile, profile)
    token = await run_in_threadpool(issue_session, user.id)
    data = {
        "message": "Login successful",
        "user": {"id": user.id, "name": user.name, "email": user.email},
        "token": token,
    }
    target = absolute_url(f"/social-callback?data={quote(json.dumps(data), safe='')}")
    response = RedirectResponse(target, status_code=302)
    response.delete_cookie(STATE_COOKIE_NAME)
    logger.info("Social sign-in via %s for user %s", name, user.id)
    return response


@router.get("/google")
def google_login(request: Request):
    return _start(request, "google")


@router.get("/google/callback")
async def google_callback(request: Request, code: str = Query(""), state: str = Query("")):
    return await _finish(request, "google", code, state)


@router.get("/facebook")
def facebook_login(request: Request):
    return _start(request, "facebook")


@router.get("/facebook/callback")
async def facebook_callback(request: Request, code: str = Query(""), state: str = Query("")):
    return await _finish(request, "facebook", code, state)
