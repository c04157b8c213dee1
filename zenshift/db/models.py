"""SQLAlchemy models for accounts, sessions and site content."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    JSON,
    func,
)
from sqlalchemy.orm import relationship

from .session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=False, index=True)
    avatar = Column(Text, nullable=True)
    password_hash = Column(Text, nullable=True)
    google_id = Column(String(255), unique=True, nullable=True)
    facebook_id = Column(String(255), unique=True, nullable=True)
    is_email_verified = Column(Boolean, default=False, nullable=False)

    verify_email_token = Column(String(255), nullable=True)
    verify_email_expire = Column(DateTime(timezone=True), nullable=True)
    reset_password_token = Column(String(255), nullable=True)
    reset_password_expire = Column(DateTime(timezone=True), nullable=True)

    subscription_plan = Column(String(16), nullable=True)
    subscription_status = Column(String(16), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True, index=True)
    stripe_subscription_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False)

    sessions = relationship("UserSession", back_populates="user", cascade="all,delete-orphan")


class UserSession(Base):
    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="sessions")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(32), nullable=True)
    category = Column(String(64), nullable=True)
    tools_type = Column(String(32), nullable=True)
    image_src = Column(JSON, nullable=False, default=list)
    rating = Column(Float, nullable=True)
    price = Column(Float, nullable=True)
    is_new_product = Column(Boolean, default=False, nullable=False)
    is_pick = Column(Boolean, default=False, nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False)

    reviews = relationship("Review", back_populates="product", cascade="all,delete-orphan")


class Journal(Base):
    __tablename__ = "journals"

    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=True)
    description = Column(Text, nullable=False)
    vertical = Column(String(32), nullable=False)
    image_src = Column(JSON, nullable=False, default=list)
    read_time = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False)


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    vertical = Column(String(32), nullable=False)
    image_src = Column(JSON, nullable=False, default=list)
    read_time = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(32), primary_key=True, default=_new_id)
    buyer_name = Column(String(100), nullable=False)
    feedback_mark = Column(Float, nullable=False)
    review_text = Column(Text, nullable=False)
    is_verified_buyer = Column(Boolean, default=False, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)

    product = relationship("Product", back_populates="reviews")
