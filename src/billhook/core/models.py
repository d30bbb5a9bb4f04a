"""
billhook Core Domain Models

Pydantic models for the webhook pipeline: the inbound envelope, the verified
event, the billing record submitted to the client-record service and the
tracking events emitted alongside it.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════
# Enums
# ══════════════════════════════════════════════════════════════


class EventType(str, Enum):
    """Stripe event types this service acts on."""

    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"


class PlanKey(str, Enum):
    """Internal subscription tier identifiers."""

    GROWTH = "sub::growth"
    RIDICULOUS = "sub::ridiculous"
    FREE = "sub::free"
    UNKNOWN = "sub::unknown"


class TrackingName(str, Enum):
    """Analytics event names emitted per webhook."""

    UPDATED_SUBSCRIPTION = "Updated Subscription"
    DELETED_SUBSCRIPTION = "Deleted Subscription"
    CREATED_SUBSCRIPTION = "Created Subscription"
    FAILED_INVOICE_PAYMENT = "Failed Invoice Payment"
    SUCCESSFUL_INVOICE_PAYMENT = "Successful Invoice Payment"


# ══════════════════════════════════════════════════════════════
# Base Models
# ══════════════════════════════════════════════════════════════


class BillhookModel(BaseModel):
    """Base model with common configuration."""

    model_config = {"from_attributes": True, "populate_by_name": True}


# ══════════════════════════════════════════════════════════════
# Webhook Models
# ══════════════════════════════════════════════════════════════


class WebhookEnvelope(BillhookModel):
    """Raw inbound delivery. The body must stay byte-exact until verified."""

    raw_body: bytes | None = None
    signature: str | None = None


class BillingEvent(BillhookModel):
    """A verified, parsed Stripe notification."""

    id: str | None = None
    type: str
    object: dict[str, Any] = Field(default_factory=dict)

    @property
    def event_type(self) -> EventType | None:
        try:
            return EventType(self.type)
        except ValueError:
            return None


class KnownPriceIds(BillhookModel):
    """Configured Stripe price identifiers for each paid or free plan."""

    growth: str = ""
    cheap: str = ""
    free: str = ""


class WebhookError(BillhookModel):
    """Generic failure reported to the provider. Never carries the cause."""

    code: str = "service_4000"
    message: str = "Failed to handle webhook"


class WebhookResult(BillhookModel):
    """Outcome of handling one delivery."""

    received: bool
    event_type: str | None = None
    handled: bool = False
    error: WebhookError | None = None

    @classmethod
    def acknowledged(cls, event_type: str | None, handled: bool) -> "WebhookResult":
        return cls(received=True, event_type=event_type, handled=handled)

    @classmethod
    def failed(cls, event_type: str | None = None) -> "WebhookResult":
        return cls(received=False, event_type=event_type, error=WebhookError())


# ══════════════════════════════════════════════════════════════
# Billing Models
# ══════════════════════════════════════════════════════════════


class Subscription(BillhookModel):
    """Subscription state stored on a client's billing record."""

    id: str | None = None
    end_date: int | None = Field(default=None, alias="endDate")
    valid: bool = True
    key: PlanKey = PlanKey.UNKNOWN


class BillingRecord(BillhookModel):
    """Canonical billing record, keyed by Stripe customer id."""

    provider: Literal["stripe"] = "stripe"
    customer_id: str = Field(alias="customerId")
    subscription: Subscription

    def to_document(self) -> dict[str, Any]:
        """Serialize with the wire field names."""
        return self.model_dump(mode="json", by_alias=True)


# ══════════════════════════════════════════════════════════════
# Client & Tracking Models
# ══════════════════════════════════════════════════════════════


class Author(BillhookModel):
    """Owner of a client; only the id is used here."""

    id: str = Field(alias="_id")


class Client(BillhookModel):
    """Client record as returned by the client-record service."""

    id: str | None = Field(default=None, alias="_id")
    customer_id: str | None = Field(default=None, alias="customerId")
    author: Author | None = None
    billing: BillingRecord | None = None

    model_config = {"from_attributes": True, "populate_by_name": True, "extra": "allow"}

    @property
    def author_id(self) -> str | None:
        return self.author.id if self.author else None


class TrackingEvent(BillhookModel):
    """Fire-and-forget analytics record."""

    name: str
    properties: dict[str, Any] = Field(default_factory=dict)
    user_id: str | None = None
