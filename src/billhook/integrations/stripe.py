"""
Stripe Provider Integration

Subscription reads and writes needed while handling billing webhooks.
"""

from typing import Any

import stripe
import structlog

logger = structlog.get_logger()


# ══════════════════════════════════════════════════════════════
# Field Helpers
# ══════════════════════════════════════════════════════════════


def subscription_period_end(subscription: dict[str, Any]) -> int | None:
    """
    Period end of a subscription.

    Newer Stripe API versions report the period on subscription items
    instead of the subscription itself.
    """
    period_end = subscription.get("current_period_end")
    if period_end is not None:
        return period_end

    items = (subscription.get("items") or {}).get("data") or []
    if items:
        return items[0].get("current_period_end")
    return None


def subscription_price_id(subscription: dict[str, Any]) -> str | None:
    """Price id of a subscription, from the legacy plan or its first item."""
    plan = subscription.get("plan") or {}
    if plan.get("id"):
        return plan["id"]

    items = (subscription.get("items") or {}).get("data") or []
    if items:
        return (items[0].get("price") or {}).get("id")
    return None


def invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    """Subscription id an invoice was raised for."""
    subscription = invoice.get("subscription")
    if isinstance(subscription, dict):
        return subscription.get("id")
    if subscription:
        return subscription

    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    return details.get("subscription")


# ══════════════════════════════════════════════════════════════
# Stripe Client
# ══════════════════════════════════════════════════════════════


class StripeClient:
    """
    Low-level Stripe API client.

    The API key is passed per request so the module-level ``stripe.api_key``
    is never touched. Subscriptions are returned as plain dicts, the shape
    webhook payloads arrive in.
    """

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Get subscription by ID."""
        try:
            subscription = await stripe.Subscription.retrieve_async(
                subscription_id,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error(
                "Failed to retrieve Stripe subscription",
                subscription_id=subscription_id,
                error=str(e),
            )
            raise
        return subscription.to_dict()

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a single-item subscription for a customer.

        Stripe replays the first response for a repeated idempotency key, so
        retried webhooks get the subscription created the first time.
        """
        params: dict[str, Any] = {
            "customer": customer_id,
            "items": [{"price": price_id}],
            "api_key": self.api_key,
        }
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            subscription = await stripe.Subscription.create_async(**params)
        except stripe.StripeError as e:
            logger.error(
                "Failed to create Stripe subscription",
                customer_id=customer_id,
                error=str(e),
            )
            raise

        logger.info(
            "Created Stripe subscription",
            customer_id=customer_id,
            subscription_id=subscription.id,
        )
        return subscription.to_dict()
