"""
Subscription reconciliation.

Keeps ``User`` subscription columns consistent with Stripe's view of the
customer. There are two entry points that may run concurrently for the same
user:

* ``initiate_checkout`` makes sure the user has a Stripe customer and returns
  a hosted checkout URL. It never changes plan or status.
* ``apply_webhook`` verifies an inbound event and overwrites plan/status from
  it. Writes are plain overwrites, so redelivered events converge to the
  same row.
"""
from __future__ import annotations

import logging

from zenshift.core.errors import NotFound
from zenshift.core.utils import ensure_absolute_url
from zenshift.domain.billing_events import OtherEvent, SubscriptionDeleted, SubscriptionUpserted
from zenshift.domain.plans import (
    STATUS_ACTIVE,
    STATUS_CANCELED,
    STATUS_INACTIVE,
    PlanCatalog,
    validate_plan,
)
from zenshift.domain.subscription import SubscriptionSnapshot
from zenshift.repositories.sql_repository import SQLRepository
from zenshift.services.billing_gateway import BillingGateway

logger = logging.getLogger(__name__)

GATEWAY_ACTIVE_STATUS = "active"


class SubscriptionService:
    def __init__(
        self,
        gateway: BillingGateway,
        catalog: PlanCatalog,
        *,
        frontend_url: str,
        webhook_secret: str,
        repository: SQLRepository | None = None,
    ) -> None:
        self.gateway = gateway
        self.catalog = catalog
        self.frontend_url = frontend_url.rstrip("/")
        self.webhook_secret = webhook_secret
        self.repository = repository or SQLRepository()

    # -------------------------------------- checkout --------------------------------------
    def _redirect_urls(self) -> tuple[str, str]:
        base = ensure_absolute_url(self.frontend_url)
        return f"{base}/dashboard?success=true", f"{base}/dashboard?canceled=true"

    def initiate_checkout(self, user_id: str, plan: str) -> str:
        plan_value = validate_plan(plan)
        user = self.repository.get_user(user_id)
        if not user:
            raise NotFound("User not found.")

        customer_id = user.stripe_customer_id
        if not customer_id:
            customer_id = self.gateway.create_customer(
                email=user.email,
                name=user.name,
                metadata={"userId": str(user.id)},
            )
            # Persisted before the session exists; a crash here just means a
            # spare customer on the next attempt.
            self.repository.set_billing_customer_id(user.id, customer_id)
            logger.info("Created Stripe customer %s for user %s", customer_id, user.id)

        price_id = self.catalog.price_for(plan_value)
        success_url, cancel_url = self._redirect_urls()
        session = self.gateway.create_checkout_session(
            customer_id=customer_id,
            price_id=price_id,
            success_url=success_url,
            cancel_url=cancel_url,
        )
        return session.url

    # -------------------------------------- webhook --------------------------------------
    def apply_webhook(self, raw_body: bytes, signature_header: str | None) -> None:
        event = self.gateway.verify_webhook_signature(raw_body, signature_header or "", self.webhook_secret)
        logger.info("Stripe webhook event %s", event.kind)
        if isinstance(event, SubscriptionUpserted):
            self._apply_upsert(event)
        elif isinstance(event, SubscriptionDeleted):
            self._apply_delete(event)
        elif isinstance(event, OtherEvent):
            logger.debug("Ignoring Stripe event %s", event.kind)

    def _apply_upsert(self, event: SubscriptionUpserted) -> None:
        user = self.repository.get_user_by_billing_customer_id(event.customer_id)
        if not user:
            logger.error("User not found for customer %s (%s)", event.customer_id, event.kind)
            return
        values = {
            "subscription_status": STATUS_ACTIVE if event.status == GATEWAY_ACTIVE_STATUS else STATUS_INACTIVE,
            "stripe_subscription_id": event.subscription_id,
        }
        plan = self.catalog.plan_for(event.price_id)
        if plan:
            values["subscription_plan"] = plan
        else:
            logger.error(
                "Unknown price ID %s for customer %s (%s); plan left unchanged",
                event.price_id,
                event.customer_id,
                event.kind,
            )
        self.repository.update_subscription_by_customer(event.customer_id, **values)
        logger.info(
            "Updated subscription for user %s: status %s -> %s, plan %s -> %s",
            user.id,
            user.subscription_status,
            values["subscription_status"],
            user.subscription_plan,
            values.get("subscription_plan", user.subscription_plan),
        )

    def _apply_delete(self, event: SubscriptionDeleted) -> None:
        user = self.repository.get_user_by_billing_customer_id(event.customer_id)
        if not user:
            logger.error("User not found for customer %s (%s)", event.customer_id, event.kind)
            return
        self.repository.update_subscription_by_customer(event.customer_id, subscription_status=STATUS_CANCELED)
        logger.info("Marked subscription as canceled for user %s", user.id)

    # -------------------------------------- status --------------------------------------
    def get_status(self, user_id: str) -> SubscriptionSnapshot:
        user = self.repository.get_user(user_id)
        if not user:
            raise NotFound("User not found.")
        return SubscriptionSnapshot.from_user(user)
