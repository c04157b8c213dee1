"""
Social sign-in: OAuth 2.0 providers and the identity linker.

Providers turn an authorization code into a normalized ``SocialProfile``;
``SocialAuthService.link_profile`` maps that profile onto a local user,
creating or linking the account as needed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from zenshift.core.errors import ConfigurationError, UpstreamError, ValidationError
from zenshift.core.utils import absolute_url, normalize_email
from zenshift.db.models import User
from zenshift.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 10.0


@dataclass(frozen=True)
class SocialProfile:
    provider: str
    provider_id: str
    email: str
    name: str
    avatar: Optional[str] = None


class OAuthProvider:
    """Authorization-code flow shared by the concrete providers."""

    name = ""
    auth_url = ""
    token_url = ""
    scopes: tuple[str, ...] = ()

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state: str) -> str:
        if not self.configured:
            raise ConfigurationError(f"{self.name} sign-in is not configured")
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"{self.auth_url}?{urlencode(params)}"

    async def _exchange_code(self, client: httpx.AsyncClient, code: str) -> str:
        response = await client.post(
            self.token_url,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.redirect_uri,
            },
        )
        response.raise_for_status()
        token = response.json().get("access_token")
        if not token:
            raise UpstreamError(f"{self.name} did not return an access token")
        return token

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> dict:
        raise NotImplementedError

    def normalize(self, data: dict) -> SocialProfile:
        raise NotImplementedError

    async def fetch_profile(self, code: str) -> SocialProfile:
        if not self.configured:
            raise ConfigurationError(f"{self.name} sign-in is not configured")
        if not code:
            raise ValidationError("Missing authorization code")
        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
                access_token = await self._exchange_code(client, code)
                data = await self._fetch_profile(client, access_token)
        except httpx.HTTPError as exc:
            logger.error("%s OAuth request failed: %s", self.name, exc)
            raise UpstreamError(f"{self.name} authentication failed") from exc
        return self.normalize(data)


class GoogleOAuthProvider(OAuthProvider):
    name = "google"
    auth_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    user_info_url = "https://www.googleapis.com/oauth2/v2/userinfo"
    scopes = ("openid", "email", "profile")

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> dict:
        response = await client.get(self.user_info_url, headers={"Authorization": f"Bearer {access_token}"})
        response.raise_for_status()
        return response.json()

    def normalize(self, data: dict) -> SocialProfile:
        return SocialProfile(
            provider=self.name,
            provider_id=str(data.get("id") or ""),
            email=normalize_email(data.get("email")),
            name=data.get("name") or "",
            avatar=data.get("picture"),
        )


class FacebookOAuthProvider(OAuthProvider):
    name = "facebook"
    auth_url = "https://www.facebook.com/v19.0/dialog/oauth"
    token_url = "https://graph.facebook.com/v19.0/oauth/access_token"
    user_info_url = "https://graph.facebook.com/me"
    scopes = ("email", "public_profile")

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> dict:
        response = await client.get(
            self.user_info_url,
            params={"fields": "id,email,first_name,last_name,picture.type(large)", "access_token": access_token},
        )
        response.raise_for_status()
        return response.json()

    def normalize(self, data: dict) -> SocialProfile:
        name = " ".join(part for part in (data.get("first_name"), data.get("last_name")) if part)
        picture = ((data.get("picture") or {}).get("data") or {}).get("url")
        return SocialProfile(
            provider=self.name,
            provider_id=str(data.get("id") or ""),
            email=normalize_email(data.get("email")),
            name=name,
            avatar=picture,
        )


def build_providers(settings) -> dict[str, OAuthProvider]:
    return {
        "google": GoogleOAuthProvider(
            settings.google_client_id,
            settings.google_client_secret,
            absolute_url("/api/auth/google/callback"),
        ),
        "facebook": FacebookOAuthProvider(
            settings.facebook_app_id,
            settings.facebook_app_secret,
            absolute_url("/api/auth/facebook/callback"),
        ),
    }


class SocialAuthService:
    """Create-or-link local accounts for external identities."""

    _id_columns = {"google": "google_id", "facebook": "facebook_id"}

    def __init__(self, repository: SQLRepository | None = None) -> None:
        self.repository = repository or SQLRepository()

    def link_profile(self, profile: SocialProfile) -> User:
        column = self._id_columns.get(profile.provider)
        if not column:
            raise ValidationError(f"Unsupported provider: {profile.provider}")
        if not profile.provider_id:
            raise ValidationError("Provider did not return an account id")

        user = self.repository.get_user_by_social_id(profile.provider, profile.provider_id)
        if user:
            return user

        if not profile.email:
            raise ValidationError("Provider did not return an email address")
        user = self.repository.get_user_by_email(profile.email)
        if user:
            values = {column: profile.provider_id, "is_email_verified": True}
            if not user.name and profile.name:
                values["name"] = profile.name
            if not user.avatar and profile.avatar:
                values["avatar"] = profile.avatar
            self.repository.update_user(user.id, **values)
            logger.info("Linked %s account to user %s", profile.provider, user.id)
            return self.repository.get_user(user.id)

        user = self.repository.create_user(
            email=profile.email,
            name=profile.name,
            avatar=profile.avatar,
            is_email_verified=True,
            **{column: profile.provider_id},
        )
        logger.info("Created user %s from %s sign-in", user.id, profile.provider)
        return user
