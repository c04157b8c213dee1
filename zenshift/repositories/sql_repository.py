"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import delete, func, select, update

from zenshift.db.models import User, UserSession
from zenshift.db.session import get_session


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _conditions(model, filters: dict[str, Any]) -> list:
    return [getattr(model, key) == value for key, value in filters.items()]


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        with get_session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def get_user_by_billing_customer_id(self, customer_id: str) -> Optional[User]:
        if not customer_id:
            return None
        with get_session() as session:
            stmt = select(User).where(User.stripe_customer_id == customer_id).limit(1)
            return session.execute(stmt).scalars().first()

    def get_user_by_social_id(self, provider: str, provider_id: str) -> Optional[User]:
        column = {"google": User.google_id, "facebook": User.facebook_id}.get(provider)
        if column is None or not provider_id:
            return None
        with get_session() as session:
            return session.execute(select(User).where(column == provider_id)).scalar_one_or_none()

    def create_user(
        self,
        *,
        email: str,
        name: str,
        password_hash: str | None = None,
        is_email_verified: bool = False,
        avatar: str | None = None,
        google_id: str | None = None,
        facebook_id: str | None = None,
    ) -> User:
        user = User(
            email=email,
            name=name,
            password_hash=password_hash,
            is_email_verified=is_email_verified,
            avatar=avatar,
            google_id=google_id,
            facebook_id=facebook_id,
        )
        with get_session() as session:
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    def save_user(self, user: User) -> User:
        """Persist every column of a (possibly detached) user instance."""
        with get_session() as session:
            merged = session.merge(user)
            session.commit()
            session.refresh(merged)
            return merged

    def update_user(self, user_id: str, **values: Any) -> None:
        if not values:
            return
        values["updated_at"] = _now()
        with get_session() as session:
            session.execute(update(User).where(User.id == user_id).values(**values))
            session.commit()

    def delete_user(self, user_id: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.user_id == user_id))
            session.execute(delete(User).where(User.id == user_id))
            session.commit()

    # -------------------------- one-time tokens --------------------------
    def set_verify_email_token(self, user_id: str, token: str, expires_at: datetime) -> None:
        self.update_user(user_id, verify_email_token=token, verify_email_expire=expires_at)

    def consume_verify_email_token(self, user_id: str) -> None:
        """Mark the address verified and clear the token pair together."""
        self.update_user(user_id, is_email_verified=True, verify_email_token=None, verify_email_expire=None)

    def set_reset_password_token(self, user_id: str, token: str, expires_at: datetime) -> None:
        self.update_user(user_id, reset_password_token=token, reset_password_expire=expires_at)

    def consume_reset_password_token(self, user_id: str, password_hash: str) -> None:
        self.update_user(
            user_id,
            password_hash=password_hash,
            reset_password_token=None,
            reset_password_expire=None,
        )

    # -------------------------- subscription --------------------------
    def set_billing_customer_id(self, user_id: str, customer_id: str) -> None:
        self.update_user(user_id, stripe_customer_id=customer_id)

    def update_subscription_by_customer(self, customer_id: str, **values: Any) -> int:
        """Overwrite subscription columns for the user owning ``customer_id``."""
        allowed = {"subscription_plan", "subscription_status", "stripe_subscription_id"}
        unknown = set(values) - allowed
        if unknown:
            raise ValueError(f"Not subscription fields: {sorted(unknown)}")
        values["updated_at"] = _now()
        with get_session() as session:
            result = session.execute(
                update(User).where(User.stripe_customer_id == customer_id).values(**values)
            )
            session.commit()
            return result.rowcount or 0

    # -------------------------- sessions --------------------------
    def create_session(self, token: str, user_id: str, expires_at: datetime) -> None:
        with get_session() as session:
            session.add(UserSession(token=token, user_id=user_id, expires_at=expires_at))
            session.commit()

    def get_user_session(self, token: str) -> Optional[UserSession]:
        with get_session() as session:
            return session.get(UserSession, token)

    def delete_session(self, token: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.token == token))
            session.commit()

    def delete_user_sessions(self, user_id: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.user_id == user_id))
            session.commit()

    # -------------------------- content resources --------------------------
    def count_resources(self, model, filters: dict[str, Any]) -> int:
        with get_session() as session:
            stmt = select(func.count()).select_from(model).where(*_conditions(model, filters))
            return int(session.execute(stmt).scalar_one())

    def list_resources(
        self,
        model,
        filters: dict[str, Any],
        order_by: Sequence[Any],
        offset: int,
        limit: int,
    ) -> list:
        with get_session() as session:
            stmt = select(model).where(*_conditions(model, filters)).order_by(*order_by).offset(offset).limit(limit)
            return list(session.execute(stmt).scalars().all())

    def get_resource(self, model, resource_id: str):
        with get_session() as session:
            return session.get(model, resource_id)

    def create_resource(self, model, values: dict[str, Any]):
        entity = model(**values)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def update_resource(self, model, resource_id: str, values: dict[str, Any]):
        with get_session() as session:
            entity = session.get(model, resource_id)
            if entity is None:
                return None
            for key, value in values.items():
                setattr(entity, key, value)
            session.commit()
            session.refresh(entity)
            return entity

    def delete_resource(self, model, resource_id: str) -> bool:
        with get_session() as session:
            entity = session.get(model, resource_id)
            if entity is None:
                return False
            session.delete(entity)
            session.commit()
            return True
