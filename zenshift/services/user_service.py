"""Profile management for the signed-in user."""
from __future__ import annotations

from typing import Optional

from zenshift.core.errors import Conflict, NotFound, ValidationError
from zenshift.core.security import hash_password
from zenshift.core.utils import normalize_email
from zenshift.db.models import User
from zenshift.repositories.sql_repository import SQLRepository
from zenshift.services.auth_service import MIN_PASSWORD_LENGTH


def public_user(user: User) -> dict:
    """Profile fields safe to return to clients."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar,
        "isEmailVerified": bool(user.is_email_verified),
        "subscription": {
            "plan": user.subscription_plan,
            "status": user.subscription_status,
        },
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
    }


class UserService:
    def __init__(self, repository: SQLRepository | None = None) -> None:
        self.repository = repository or SQLRepository()

    def update_profile(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        user = self.repository.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        values: dict = {}
        if name is not None:
            values["name"] = name.strip()
        if email is not None:
            new_email = normalize_email(email)
            if new_email != user.email:
                if self.repository.get_user_by_email(new_email):
                    raise Conflict("Email already registered")
                values["email"] = new_email
        if password is not None:
            if len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
            values["password_hash"] = hash_password(password)
        self.repository.update_user(user_id, **values)
        return self.repository.get_user(user_id)

    def delete_account(self, user_id: str) -> None:
        if not self.repository.get_user(user_id):
            raise NotFound("User not found")
        self.repository.delete_user(user_id)
