"""
Authentication and identity related use cases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from zenshift.core.config import get_settings
from zenshift.core.errors import AuthenticationError, Conflict, ValidationError
from zenshift.core.mailer import render_email, send_email
from zenshift.core.security import (
    hash_password,
    is_expired,
    password_needs_rehash,
    token_matches,
    token_pair,
    verify_password,
)
from zenshift.core.utils import absolute_url, normalize_email
from zenshift.db.models import User
from zenshift.repositories.sql_repository import SQLRepository
from zenshift.services.session_service import delete_session, issue_session

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class TokenInvalidError(ValidationError):
    pass


@dataclass
class RegisterResult:
    user: User
    verify_url: str
    email_sent: bool


@dataclass
class LoginResult:
    user: User
    session_token: str


@dataclass
class AuthService:
    """Handles registration, login, verification and password reset flows."""

    def __post_init__(self):
        self.settings = get_settings()
        self.repository = SQLRepository()

    # -------------------------------------- helpers --------------------------------------
    def _link(self, path: str, token: str, email: str) -> str:
        return absolute_url(f"{path}?{urlencode({'token': token, 'email': email})}")

    def _check_password(self, password: str) -> None:
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    def _send_verification(self, user: User) -> tuple[str, bool]:
        token, expires_at = token_pair(self.settings.email_token_ttl_seconds)
        self.repository.set_verify_email_token(user.id, token, expires_at)
        verify_url = self._link("/verify-email", token, user.email)
        sent = send_email(
            "Email Verification",
            user.email,
            render_email("verify_email.html", name=user.name, verification_url=verify_url),
            f"Confirm your email address: {verify_url}",
        )
        return verify_url, sent

    # -------------------------------------- registration --------------------------------------
    def register(self, name: str, email: str, password: str) -> RegisterResult:
        raw_email = normalize_email(email)
        if not raw_email:
            raise ValidationError("Email is required")
        self._check_password(password)
        if self.repository.get_user_by_email(raw_email):
            raise Conflict("Email already registered")
        user = self.repository.create_user(
            email=raw_email,
            name=(name or "").strip(),
            password_hash=hash_password(password),
        )
        verify_url, sent = self._send_verification(user)
        logger.info("Registered user %s (verification email sent: %s)", user.id, sent)
        return RegisterResult(user=user, verify_url=verify_url, email_sent=sent)

    def resend_verification(self, email: str) -> bool:
        user = self.repository.get_user_by_email(normalize_email(email))
        if not user or user.is_email_verified:
            return False
        _, sent = self._send_verification(user)
        return sent

    # -------------------------------------- login --------------------------------------
    def login(self, email: str, password: str) -> LoginResult:
        user = self.repository.get_user_by_email(normalize_email(email))
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if password_needs_rehash(user.password_hash):
            self.repository.update_user(user.id, password_hash=hash_password(password))
        return LoginResult(user=user, session_token=issue_session(user.id))

    def logout(self, session_token: Optional[str]) -> None:
        delete_session(session_token)

    # -------------------------------------- verification --------------------------------------
    def verify_email(self, email: str, token: str) -> User:
        user = self.repository.get_user_by_email(normalize_email(email))
        if not user:
            raise TokenInvalidError("Invalid or expired verification token")
        if user.is_email_verified:
            raise ValidationError("Email is already verified")
        if not token_matches((token or "").strip(), user.verify_email_token) or is_expired(user.verify_email_expire):
            raise TokenInvalidError("Invalid or expired verification token")
        self.repository.consume_verify_email_token(user.id)
        return self.repository.get_user(user.id)

    # -------------------------------------- password reset --------------------------------------
    def issue_password_reset(self, email: str) -> bool:
        user = self.repository.get_user_by_email(normalize_email(email))
        if not user:
            return False
        token, expires_at = token_pair(self.settings.email_token_ttl_seconds)
        self.repository.set_reset_password_token(user.id, token, expires_at)
        reset_url = self._link("/reset-password", token, user.email)
        return send_email(
            "Reset Password",
            user.email,
            render_email("password_reset.html", name=user.name, reset_url=reset_url),
            f"Use this link to reset your password: {reset_url}",
        )

    def reset_password(self, email: str, token: str, password: str) -> User:
        self._check_password(password)
        user = self.repository.get_user_by_email(normalize_email(email))
        if (
            not user
            or not token_matches((token or "").strip(), user.reset_password_token)
            or is_expired(user.reset_password_expire)
        ):
            raise TokenInvalidError("Invalid or expired password reset token")
        self.repository.consume_reset_password_token(user.id, hash_password(password))
        self.repository.delete_user_sessions(user.id)
        return self.repository.get_user(user.id)
