"""Core domain models and errors."""

from .exceptions import BillhookError, DownstreamCallError, VerificationError
from .models import (
    Author,
    BillingEvent,
    BillingRecord,
    Client,
    EventType,
    KnownPriceIds,
    PlanKey,
    Subscription,
    TrackingEvent,
    TrackingName,
    WebhookEnvelope,
    WebhookError,
    WebhookResult,
)

__all__ = [
    "Author",
    "BillingEvent",
    "BillingRecord",
    "BillhookError",
    "Client",
    "DownstreamCallError",
    "EventType",
    "KnownPriceIds",
    "PlanKey",
    "Subscription",
    "TrackingEvent",
    "TrackingName",
    "VerificationError",
    "WebhookEnvelope",
    "WebhookError",
    "WebhookResult",
]
