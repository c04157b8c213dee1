"""Request bodies accepted by the JSON API."""
from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case (column names) in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# -------------------------------------- auth --------------------------------------
class RegisterIn(ApiModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)


class LoginIn(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class VerifyEmailIn(ApiModel):
    email: EmailStr
    token: str = Field(min_length=1)


class EmailIn(ApiModel):
    email: EmailStr


class ResetPasswordIn(ApiModel):
    email: EmailStr
    token: str = Field(min_length=1)
    password: str = Field(min_length=6)


class ProfileUpdateIn(ApiModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)


# -------------------------------------- subscription --------------------------------------
class CheckoutIn(ApiModel):
    # Plan is validated by the service so that bad values surface as "Invalid plan."
    plan: Optional[str] = None
    user_id: str = Field(min_length=1)


# -------------------------------------- email --------------------------------------
class SendEmailIn(ApiModel):
    to: EmailStr
    subject: str = Field(min_length=1)
    text: Optional[str] = None
    html: Optional[str] = None


# -------------------------------------- content --------------------------------------
ProductType = Literal["physical", "digital", "affiliate"]
ProductCategory = Literal[
    "mugs-drinkware",
    "appare-accessories",
    "journals-papers",
    "home-energy-tools",
    "stickers-printables",
    "digital-art-decoy",
    "jewelry",
    "featured-collection",
]
ToolsType = Literal["mug", "shirt", "journal"]
JournalVertical = Literal["interiors", "abundance", "health", "apothecary", "energy"]
BlogVertical = Literal["interiors", "abundance", "health", "apothecary"]


class ProductIn(ApiModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    type: Optional[ProductType] = None
    category: Optional[ProductCategory] = None
    tools_type: Optional[ToolsType] = None
    image_src: List[str]
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    price: Optional[float] = Field(default=None, ge=0)
    is_new_product: Optional[bool] = None
    is_pick: Optional[bool] = None
    details: Optional[dict[str, Any]] = None


class JournalIn(ApiModel):
    title: str = Field(min_length=1)
    author: Optional[str] = None
    description: str = Field(min_length=1)
    vertical: JournalVertical
    image_src: Optional[List[str]] = None
    read_time: Optional[str] = None


class BlogPostIn(ApiModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    vertical: BlogVertical
    image_src: Optional[List[str]] = None
    read_time: Optional[str] = None


class ReviewIn(ApiModel):
    buyer_name: str = Field(min_length=2, max_length=100)
    feedback_mark: float = Field(ge=0, le=5)
    review_text: str = Field(min_length=2, max_length=1000)
    is_verified_buyer: Optional[bool] = None
    is_featured: Optional[bool] = None
    product_id: str = Field(alias="product", min_length=1)
