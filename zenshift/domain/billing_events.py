"""Typed billing events.

Webhook payloads are mapped into one of these at the gateway boundary so
the reconciler never inspects raw gateway dictionaries.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

SUBSCRIPTION_CREATED = "customer.subscription.created"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


@dataclass(frozen=True)
class SubscriptionUpserted:
    kind: str
    customer_id: str
    subscription_id: str
    status: str
    price_id: Optional[str]


@dataclass(frozen=True)
class SubscriptionDeleted:
    kind: str
    customer_id: str
    subscription_id: str


@dataclass(frozen=True)
class OtherEvent:
    kind: str


BillingEvent = Union[SubscriptionUpserted, SubscriptionDeleted, OtherEvent]


def _customer_id(obj: Mapping[str, Any]) -> str:
    customer = obj.get("customer")
    # Expanded customers arrive as objects rather than ids.
    if isinstance(customer, Mapping):
        customer = customer.get("id")
    return str(customer or "")


def _first_price_id(obj: Mapping[str, Any]) -> Optional[str]:
    items = (obj.get("items") or {}).get("data") or []
    if not items:
        return None
    price = items[0].get("price") or {}
    if isinstance(price, Mapping):
        return price.get("id")
    return str(price)


def parse_event(payload: Mapping[str, Any]) -> BillingEvent:
    kind = str(payload.get("type") or "")
    obj = (payload.get("data") or {}).get("object") or {}
    if kind in (SUBSCRIPTION_CREATED, SUBSCRIPTION_UPDATED):
        return SubscriptionUpserted(
            kind=kind,
            customer_id=_customer_id(obj),
            subscription_id=str(obj.get("id") or ""),
            status=str(obj.get("status") or ""),
            price_id=_first_price_id(obj),
        )
    if kind == SUBSCRIPTION_DELETED:
        return SubscriptionDeleted(
            kind=kind,
            customer_id=_customer_id(obj),
            subscription_id=str(obj.get("id") or ""),
        )
    return OtherEvent(kind=kind)
