from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# Make the zenshift package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from zenshift.core import config as core_config
from zenshift.core.errors import InvalidSignature, UpstreamError
from zenshift.core.rate_limiter import reset_rate_limits
from zenshift.db import models
from zenshift.db import session as db_session
from zenshift.domain.billing_events import parse_event
from zenshift.services.billing_gateway import CheckoutSession

BASIC_PRICE = "price_basic_test"
PREMIUM_PRICE = "price_premium_test"
WEBHOOK_SECRET = "whsec_test_secret"
VALID_SIGNATURE = "t=1,v1=valid"


class FakeGateway:
    """In-memory stand-in for StripeGateway that records every call."""

    def __init__(self):
        self.customers: list[dict] = []
        self.sessions: list[dict] = []
        self.fail_with: str | None = None

    def create_customer(self, email, name, metadata):
        if self.fail_with:
            raise UpstreamError(self.fail_with)
        customer_id = f"cus_test_{len(self.customers) + 1}"
        self.customers.append({"id": customer_id, "email": email, "name": name, "metadata": metadata})
        return customer_id

    def create_checkout_session(self, customer_id, price_id, success_url, cancel_url):
        if self.fail_with:
            raise UpstreamError(self.fail_with)
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions.append(
            {
                "id": session_id,
                "customer_id": customer_id,
                "price_id": price_id,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/{session_id}")

    @property
    def calls(self) -> int:
        return len(self.customers) + len(self.sessions)

    def verify_webhook_signature(self, raw_body, signature_header, secret):
        if not secret or signature_header != VALID_SIGNATURE:
            raise InvalidSignature("Webhook Error: No signatures found matching the expected signature for payload")
        return parse_event(json.loads(raw_body))


def subscription_event(kind: str, customer_id: str, *, price_id: str = PREMIUM_PRICE, status: str = "active") -> bytes:
    """Raw webhook body shaped like Stripe's subscription events."""
    payload = {
        "id": "evt_test",
        "type": kind,
        "data": {
            "object": {
                "id": "sub_test_1",
                "object": "subscription",
                "customer": customer_id,
                "status": status,
                "items": {"data": [{"id": "si_test", "price": {"id": price_id}}]},
            }
        },
    }
    return json.dumps(payload).encode("utf-8")


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Temporary SQLite database plus a predictable environment."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://testserver")
    monkeypatch.setenv("FRONTEND_URL", "shop.example.com")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setenv("STRIPE_BASIC_PRICE_ID", BASIC_PRICE)
    monkeypatch.setenv("STRIPE_PREMIUM_PRICE_ID", PREMIUM_PRICE)
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setenv("UPLOADS_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("STATIC_DIR", str(tmp_path / "static"))
    for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "SMTP_FROM"):
        monkeypatch.delenv(name, raising=False)
    core_config.get_settings.cache_clear()
    db_session.reset_engine()
    reset_rate_limits()

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    try:
        models.Base.metadata.drop_all(bind=engine)
    finally:
        engine.dispose()
        db_session.reset_engine()
        core_config.get_settings.cache_clear()
        reset_rate_limits()


@pytest.fixture()
def fake_gateway():
    return FakeGateway()


@pytest.fixture()
def sent_emails(monkeypatch):
    """Capture outgoing mail instead of talking to SMTP."""
    from zenshift.services import auth_service

    outbox: list[dict] = []

    def _fake_send_email(subject, to_email, html_body, text_body=None):
        outbox.append({"subject": subject, "to": to_email, "html": html_body, "text": text_body})
        return True

    monkeypatch.setattr(auth_service, "send_email", _fake_send_email)
    return outbox
