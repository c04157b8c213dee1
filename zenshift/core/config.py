"""
Configuration helpers for the Zenshift backend.

Every environment variable the application understands is read here and
exposed through a frozen Settings object, so routers and services never
touch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    log_level: str
    database_url: str
    public_base_url: str
    frontend_url: str
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    session_ttl_seconds: int
    email_token_ttl_seconds: int
    stripe_secret_key: str
    stripe_basic_price_id: str
    stripe_premium_price_id: str
    stripe_webhook_secret: str
    google_client_id: str
    google_client_secret: str
    facebook_app_id: str
    facebook_app_secret: str
    uploads_dir: str
    static_dir: str
    max_upload_bytes: int


def clean_env_value(value: str | None) -> str:
    """Strip whitespace and one pair of accidental surrounding quotes."""
    text = (value or "").strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {"'", '"'}:
        text = text[1:-1].strip()
    return text


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str | None, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _env(name: str, default: str = "") -> str:
        return clean_env_value(os.getenv(name, default))

    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    return Settings(
        app_env=(_env("APP_ENV") or "dev").lower(),
        log_level=(_env("LOG_LEVEL") or "INFO").upper(),
        database_url=_env("DATABASE_URL") or "sqlite:///./zenshift.db",
        public_base_url=(_env("PUBLIC_BASE_URL") or "http://localhost:5000").rstrip("/"),
        frontend_url=(_env("FRONTEND_URL") or "https://zenshift.com").rstrip("/"),
        smtp_host=_env("SMTP_HOST"),
        smtp_port=_int(_env("SMTP_PORT", "465"), 465),
        smtp_user=_env("SMTP_USER"),
        smtp_password=_env("SMTP_PASSWORD"),
        smtp_from=_env("SMTP_FROM") or _env("SMTP_USER"),
        session_ttl_seconds=_int(_env("SESSION_TTL_SECONDS"), 7 * 24 * 3600),
        email_token_ttl_seconds=_int(_env("EMAIL_TOKEN_TTL_SECONDS"), 3600),
        stripe_secret_key=_env("STRIPE_SECRET_KEY"),
        stripe_basic_price_id=_env("STRIPE_BASIC_PRICE_ID"),
        stripe_premium_price_id=_env("STRIPE_PREMIUM_PRICE_ID"),
        stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET"),
        google_client_id=_env("GOOGLE_CLIENT_ID"),
        google_client_secret=_env("GOOGLE_CLIENT_SECRET"),
        facebook_app_id=_env("FACEBOOK_APP_ID"),
        facebook_app_secret=_env("FACEBOOK_APP_SECRET"),
        uploads_dir=_env("UPLOADS_DIR") or os.path.join(base_dir, "uploads"),
        static_dir=_env("STATIC_DIR") or os.path.join(base_dir, "static"),
        max_upload_bytes=_int(_env("MAX_UPLOAD_BYTES"), 100 * 1024 * 1024),
    )
