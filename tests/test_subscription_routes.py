"""
End-to-end checks of the subscription endpoints with a fake billing gateway.
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import PREMIUM_PRICE, VALID_SIGNATURE, subscription_event
from zenshift.app import create_app
from zenshift.domain.billing_events import SUBSCRIPTION_CREATED, SUBSCRIPTION_DELETED, SUBSCRIPTION_UPDATED
from zenshift.repositories.sql_repository import SQLRepository


@pytest.fixture()
def client(db_env, fake_gateway):
    with TestClient(create_app(gateway=fake_gateway)) as test_client:
        yield test_client


@pytest.fixture()
def u1(db_env):
    return SQLRepository().create_user(email="u1@example.com", name="User One", password_hash="x")


def _webhook(client, body, signature=VALID_SIGNATURE):
    return client.post(
        "/api/subscription/webhook",
        content=body,
        headers={"stripe-signature": signature, "content-type": "application/json"},
    )


def test_checkout_to_cancellation_flow(client, u1, fake_gateway):
    res = client.post("/api/subscription/create-checkout-session", json={"plan": "premium", "userId": u1.id})
    assert res.status_code == 200
    assert res.json()["url"].startswith("https://checkout.stripe.test/")
    assert len(fake_gateway.customers) == 1

    status = client.get("/api/subscription/status", params={"userId": u1.id}).json()["subscription"]
    customer_id = status["stripeCustomerId"]
    assert customer_id
    assert status["plan"] is None
    assert status["status"] is None

    res = _webhook(client, subscription_event(SUBSCRIPTION_CREATED, customer_id, price_id=PREMIUM_PRICE))
    assert res.status_code == 200
    assert res.json() == {"received": True}
    status = client.get("/api/subscription/status", params={"userId": u1.id}).json()["subscription"]
    assert status == {
        "plan": "premium",
        "status": "active",
        "stripeCustomerId": customer_id,
        "stripeSubscriptionId": "sub_test_1",
    }

    _webhook(client, subscription_event(SUBSCRIPTION_DELETED, customer_id))
    status = client.get("/api/subscription/status", params={"userId": u1.id}).json()["subscription"]
    assert status["status"] == "canceled"
    assert status["plan"] == "premium"


def test_invalid_plan_returns_400(client, u1, fake_gateway):
    res = client.post("/api/subscription/create-checkout-session", json={"plan": "gold", "userId": u1.id})
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid plan."}
    assert fake_gateway.calls == 0


def test_checkout_unknown_user_returns_404(client):
    res = client.post("/api/subscription/create-checkout-session", json={"plan": "basic", "userId": "nope"})
    assert res.status_code == 404


def test_checkout_gateway_failure_echoes_error(client, u1, fake_gateway):
    fake_gateway.fail_with = "card network unavailable"
    res = client.post("/api/subscription/create-checkout-session", json={"plan": "basic", "userId": u1.id})
    assert res.status_code == 500
    assert res.json() == {"message": "Stripe error", "error": "card network unavailable"}


def test_webhook_bad_signature_returns_400_without_mutation(client, u1):
    repo = SQLRepository()
    repo.set_billing_customer_id(u1.id, "cus_42")
    res = _webhook(client, subscription_event(SUBSCRIPTION_UPDATED, "cus_42"), signature="t=1,v1=forged")
    assert res.status_code == 400
    stored = repo.get_user(u1.id)
    assert stored.subscription_status is None
    assert stored.subscription_plan is None


def test_webhook_unknown_customer_acknowledged(client, u1):
    res = _webhook(client, subscription_event(SUBSCRIPTION_UPDATED, "cus_unknown"))
    assert res.status_code == 200
    assert res.json() == {"received": True}
    assert SQLRepository().get_user(u1.id).subscription_status is None


def test_status_requires_user_id(client):
    res = client.get("/api/subscription/status")
    assert res.status_code == 400
    assert "error" in res.json()


def test_status_unknown_user(client):
    assert client.get("/api/subscription/status", params={"userId": "missing"}).status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_unknown_api_path_is_json_404(client):
    res = client.get("/api/does-not-exist")
    assert res.status_code == 404
    assert res.json() == {"message": "Not found"}
