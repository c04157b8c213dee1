from __future__ import annotations

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from zenshift.core.errors import ConfigurationError, InvalidSignature, UpstreamError
from zenshift.domain.billing_events import OtherEvent, SubscriptionDeleted, SubscriptionUpserted
from zenshift.services.billing_gateway import StripeGateway

SECRET = "whsec_local_test"


def _sign(payload: bytes, secret: str = SECRET, timestamp: int | None = None) -> str:
    ts = int(timestamp if timestamp is not None else time.time())
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def _payload(kind: str, **obj) -> bytes:
    body = {"id": "evt_1", "object": "event", "type": kind, "data": {"object": obj}}
    return json.dumps(body).encode("utf-8")


@pytest.fixture()
def gateway():
    return StripeGateway("sk_test_dummy")


def test_missing_api_key_is_fatal():
    with pytest.raises(ConfigurationError):
        StripeGateway("")


def test_verifies_signed_subscription_update(gateway):
    body = _payload(
        "customer.subscription.updated",
        id="sub_1",
        customer="cus_1",
        status="active",
        items={"data": [{"price": {"id": "price_premium"}}]},
    )
    event = gateway.verify_webhook_signature(body, _sign(body), SECRET)
    assert event == SubscriptionUpserted(
        kind="customer.subscription.updated",
        customer_id="cus_1",
        subscription_id="sub_1",
        status="active",
        price_id="price_premium",
    )


def test_verifies_signed_deletion(gateway):
    body = _payload("customer.subscription.deleted", id="sub_1", customer="cus_1", status="canceled")
    event = gateway.verify_webhook_signature(body, _sign(body), SECRET)
    assert isinstance(event, SubscriptionDeleted)
    assert event.customer_id == "cus_1"


def test_other_event_kinds(gateway):
    body = _payload("checkout.session.completed", id="cs_1", customer="cus_1")
    assert gateway.verify_webhook_signature(body, _sign(body), SECRET) == OtherEvent(kind="checkout.session.completed")


def test_rejects_wrong_secret(gateway):
    body = _payload("customer.subscription.updated", id="sub_1", customer="cus_1", status="active")
    with pytest.raises(InvalidSignature):
        gateway.verify_webhook_signature(body, _sign(body, secret="whsec_other"), SECRET)


def test_rejects_tampered_body(gateway):
    body = _payload("customer.subscription.updated", id="sub_1", customer="cus_1", status="active")
    header = _sign(body)
    tampered = body.replace(b"cus_1", b"cus_2")
    with pytest.raises(InvalidSignature):
        gateway.verify_webhook_signature(tampered, header, SECRET)


def test_rejects_stale_timestamp(gateway):
    body = _payload("customer.subscription.updated", id="sub_1", customer="cus_1", status="active")
    with pytest.raises(InvalidSignature):
        gateway.verify_webhook_signature(body, _sign(body, timestamp=int(time.time()) - 3600), SECRET)


def test_rejects_missing_header_or_secret(gateway):
    body = _payload("customer.subscription.updated", id="sub_1", customer="cus_1", status="active")
    with pytest.raises(InvalidSignature):
        gateway.verify_webhook_signature(body, "", SECRET)
    with pytest.raises(InvalidSignature):
        gateway.verify_webhook_signature(body, _sign(body), "")


def test_create_customer_passes_metadata(gateway, monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="cus_new")

    monkeypatch.setattr(stripe.Customer, "create", fake_create)
    assert gateway.create_customer("a@example.com", "Ann", {"userId": "u1"}) == "cus_new"
    assert captured["api_key"] == "sk_test_dummy"
    assert captured["metadata"] == {"userId": "u1"}


def test_checkout_session_is_subscription_mode(gateway, monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="cs_1", url="https://checkout.stripe.com/c/cs_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    session = gateway.create_checkout_session("cus_1", "price_basic", "https://s", "https://c")
    assert session.url == "https://checkout.stripe.com/c/cs_1"
    assert captured["mode"] == "subscription"
    assert captured["customer"] == "cus_1"
    assert captured["line_items"] == [{"price": "price_basic", "quantity": 1}]


def test_stripe_errors_become_upstream_errors(gateway, monkeypatch):
    def fake_create(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.Customer, "create", fake_create)
    with pytest.raises(UpstreamError) as excinfo:
        gateway.create_customer("a@example.com", "Ann", {"userId": "u1"})
    assert "network down" in excinfo.value.message
