"""Session helpers (issue tokens, read them from requests, validation)."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import Request

from zenshift.core.config import get_settings
from zenshift.core.errors import AuthenticationError
from zenshift.core.security import is_expired, new_token
from zenshift.db.models import User
from zenshift.repositories.sql_repository import SQLRepository

SESSION_COOKIE_NAME = "session"

_repository = SQLRepository()


def issue_session(user_id: str) -> str:
    """Create a new session token and persist it in the SQL store."""
    token = new_token()
    settings = get_settings()
    ttl = max(60, settings.session_ttl_seconds)
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)
    _repository.create_session(token, user_id, expires_at)
    return token


def token_from_request(request: Request) -> str | None:
    header = request.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def resolve_session(token: str | None) -> str | None:
    """Return the user id behind a live session token, dropping expired ones."""
    if not token:
        return None
    entity = _repository.get_user_session(token)
    if not entity:
        return None
    if is_expired(entity.expires_at):
        _repository.delete_session(token)
        return None
    return entity.user_id


def delete_session(token: str | None) -> None:
    if not token:
        return
    _repository.delete_session(token)


def require_user(request: Request) -> User:
    """FastAPI dependency: the authenticated user or a 401."""
    user_id = resolve_session(token_from_request(request))
    user = _repository.get_user(user_id) if user_id else None
    if not user:
        raise AuthenticationError("Invalid or expired token")
    return user
