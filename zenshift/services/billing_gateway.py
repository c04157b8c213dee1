"""
Billing gateway adapter.

A thin wrapper over Stripe's customer, checkout-session and webhook APIs.
The adapter is constructed once at startup from Settings and handed to the
subscription service, so tests can substitute any object that satisfies
``BillingGateway``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Protocol

import stripe

from zenshift.core.errors import ConfigurationError, InvalidSignature, UpstreamError
from zenshift.domain.billing_events import BillingEvent, parse_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


class BillingGateway(Protocol):
    def create_customer(self, email: str, name: str, metadata: dict[str, str]) -> str:
        ...

    def create_checkout_session(
        self, customer_id: str, price_id: str, success_url: str, cancel_url: str
    ) -> CheckoutSession:
        ...

    def verify_webhook_signature(self, raw_body: bytes, signature_header: str, secret: str) -> BillingEvent:
        ...


class StripeGateway:
    """``BillingGateway`` backed by the Stripe API."""

    def __init__(self, api_key: str):
        if not api_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not set in environment variables.")
        self._api_key = api_key

    @classmethod
    def from_settings(cls, settings) -> "StripeGateway":
        if not settings.stripe_webhook_secret:
            logger.warning("STRIPE_WEBHOOK_SECRET is not set; webhook validation will fail.")
        return cls(settings.stripe_secret_key)

    def create_customer(self, email: str, name: str, metadata: dict[str, str]) -> str:
        try:
            customer = stripe.Customer.create(
                api_key=self._api_key,
                email=email,
                name=name or None,
                metadata=metadata,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe customer creation failed for %s: %s", email, exc)
            raise UpstreamError(str(exc)) from exc
        return customer.id

    def create_checkout_session(
        self, customer_id: str, price_id: str, success_url: str, cancel_url: str
    ) -> CheckoutSession:
        try:
            session = stripe.checkout.Session.create(
                api_key=self._api_key,
                mode="subscription",
                payment_method_types=["card"],
                customer=customer_id,
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe checkout session failed for customer %s: %s", customer_id, exc)
            raise UpstreamError(str(exc)) from exc
        return CheckoutSession(id=session.id, url=session.url)

    def verify_webhook_signature(self, raw_body: bytes, signature_header: str, secret: str) -> BillingEvent:
        if not secret:
            raise InvalidSignature("Webhook secret not configured")
        try:
            stripe.Webhook.construct_event(raw_body, signature_header or "", secret)
        except (stripe.SignatureVerificationError, ValueError) as exc:
            raise InvalidSignature(f"Webhook Error: {exc}") from exc
        # Signature already covers these exact bytes.
        payload = json.loads(raw_body)
        return parse_event(payload)
