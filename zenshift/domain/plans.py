"""Subscription plans and their mapping onto gateway price identifiers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from zenshift.core.errors import ConfigurationError, InvalidPlan

PLAN_BASIC = "basic"
PLAN_PREMIUM = "premium"
PLANS = (PLAN_BASIC, PLAN_PREMIUM)

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"
STATUS_CANCELED = "canceled"


def validate_plan(plan: str | None) -> str:
    if plan not in PLANS:
        raise InvalidPlan("Invalid plan.")
    return plan


@dataclass(frozen=True)
class PlanCatalog:
    """Static plan <-> price mapping used by both checkout and webhooks."""

    basic_price_id: str = ""
    premium_price_id: str = ""

    @classmethod
    def from_settings(cls, settings) -> "PlanCatalog":
        return cls(
            basic_price_id=settings.stripe_basic_price_id,
            premium_price_id=settings.stripe_premium_price_id,
        )

    def _prices(self) -> dict[str, str]:
        return {PLAN_BASIC: self.basic_price_id, PLAN_PREMIUM: self.premium_price_id}

    def price_for(self, plan: str) -> str:
        price_id = self._prices().get(plan)
        if not price_id:
            raise ConfigurationError("Stripe price ID is not set correctly in environment variables.")
        return price_id

    def plan_for(self, price_id: str | None) -> Optional[str]:
        if not price_id:
            return None
        for plan, configured in self._prices().items():
            if configured and configured == price_id:
                return plan
        return None
