from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SubscriptionSnapshot:
    plan: Optional[str]
    status: Optional[str]
    stripe_customer_id: Optional[str]
    stripe_subscription_id: Optional[str]

    @classmethod
    def from_user(cls, user) -> "SubscriptionSnapshot":
        return cls(
            plan=user.subscription_plan,
            status=user.subscription_status,
            stripe_customer_id=user.stripe_customer_id,
            stripe_subscription_id=user.stripe_subscription_id,
        )

    def to_dict(self) -> dict:
        return {
            "plan": self.plan,
            "status": self.status,
            "stripeCustomerId": self.stripe_customer_id,
            "stripeSubscriptionId": self.stripe_subscription_id,
        }
