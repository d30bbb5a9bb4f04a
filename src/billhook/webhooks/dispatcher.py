"""
Webhook Dispatcher

Classifies verified Stripe events and applies their side effects: billing
record updates first, tracking events after. Stripe re-delivers any event
that is not acknowledged, so every effect here is a full overwrite and safe
to repeat.
"""

from typing import Any, Awaitable, Callable, Protocol, TypeVar

import structlog

from billhook.core.exceptions import DownstreamCallError, VerificationError
from billhook.core.models import (
    BillingEvent,
    BillingRecord,
    EventType,
    KnownPriceIds,
    PlanKey,
    Subscription,
    TrackingEvent,
    TrackingName,
    WebhookEnvelope,
    WebhookResult,
)
from billhook.integrations.stripe import (
    StripeClient,
    invoice_subscription_id,
    subscription_period_end,
    subscription_price_id,
)
from billhook.services.clients import ClientRecords

from .plans import resolve_plan_key
from .verifier import SignatureVerifier

logger = structlog.get_logger()

T = TypeVar("T")

Handler = Callable[[dict[str, Any]], Awaitable[None]]


class Tracker(Protocol):
    async def track(self, event: TrackingEvent) -> Any: ...


def customer_id_of(obj: dict[str, Any]) -> str | None:
    """Customer id of a Stripe object, whether or not it was expanded."""
    customer = obj.get("customer")
    if isinstance(customer, dict):
        return customer.get("id")
    return customer


def free_downgrade_key(deleted: dict[str, Any]) -> str | None:
    """Idempotency key for the free subscription replacing ``deleted``."""
    subscription_id = deleted.get("id")
    return f"free-downgrade-{subscription_id}" if subscription_id else None


class WebhookDispatcher:
    """
    Handles Stripe billing webhooks.

    Usage:
        dispatcher = WebhookDispatcher(verifier, stripe_client, clients, tracking, price_ids)
        result = await dispatcher.handle(WebhookEnvelope(raw_body=body, signature=header))
    """

    def __init__(
        self,
        verifier: SignatureVerifier,
        stripe_client: StripeClient,
        clients: ClientRecords,
        tracking: Tracker,
        price_ids: KnownPriceIds,
    ):
        self.verifier = verifier
        self.stripe = stripe_client
        self.clients = clients
        self.tracking = tracking
        self.price_ids = price_ids

        self._handlers: dict[EventType, Handler] = {
            EventType.SUBSCRIPTION_UPDATED: self._handle_subscription_updated,
            EventType.SUBSCRIPTION_DELETED: self._handle_subscription_deleted,
            EventType.INVOICE_PAYMENT_FAILED: self._handle_invoice_payment_failed,
            EventType.INVOICE_PAYMENT_SUCCEEDED: self._handle_invoice_payment_succeeded,
        }

    # ──────────────────────────────────────────────────────────
    # Entry Points
    # ──────────────────────────────────────────────────────────

    async def handle(self, envelope: WebhookEnvelope) -> WebhookResult:
        """Verify and dispatch one delivery. Never raises."""
        event_type: str | None = None
        try:
            event = self.verifier.verify(envelope.raw_body, envelope.signature)
            event_type = event.type
            return await self.dispatch(event)

        except VerificationError as e:
            logger.warning("Rejected webhook delivery", reason=str(e))

        except DownstreamCallError as e:
            logger.error(
                "Webhook processing failed",
                event_type=event_type,
                operation=e.operation,
                error=str(e.cause),
            )

        except Exception as e:
            logger.error(
                "Unexpected error handling webhook",
                event_type=event_type,
                error=str(e),
            )

        return WebhookResult.failed(event_type)

    async def dispatch(self, event: BillingEvent) -> WebhookResult:
        """
        Apply the side effects of a verified event.

        Unrecognised event types are acknowledged without effects so Stripe
        does not keep re-delivering them.

        Raises:
            DownstreamCallError: A billing call or Stripe call failed
        """
        event_type = event.event_type
        handler = self._handlers.get(event_type) if event_type else None

        if handler is None:
            logger.info("Ignoring unhandled event", event_type=event.type, event_id=event.id)
            return WebhookResult.acknowledged(event.type, handled=False)

        logger.info("Processing webhook event", event_type=event.type, event_id=event.id)
        await handler(event.object)
        return WebhookResult.acknowledged(event.type, handled=True)

    async def close(self) -> None:
        """Close collaborators that hold connections."""
        for collaborator in (self.clients, self.tracking):
            close = getattr(collaborator, "close", None)
            if close is not None:
                await close()

    # ──────────────────────────────────────────────────────────
    # Event Handlers
    # ──────────────────────────────────────────────────────────

    async def _handle_subscription_updated(self, subscription: dict[str, Any]) -> None:
        customer_id = self._require_customer(subscription)
        key = resolve_plan_key(subscription_price_id(subscription), self.price_ids)
        if key is PlanKey.UNKNOWN:
            logger.warning(
                "Subscription price matches no configured plan",
                subscription_id=subscription.get("id"),
                price_id=subscription_price_id(subscription),
            )

        billing = BillingRecord(
            customer_id=customer_id,
            subscription=Subscription(
                id=subscription.get("id"),
                end_date=subscription_period_end(subscription),
                valid=True,
                key=key,
            ),
        )
        client = await self._call(
            "update billing",
            self.clients.update_billing_by_customer_id(customer_id, billing),
        )

        await self._track(
            TrackingName.UPDATED_SUBSCRIPTION,
            subscription,
            client.author_id if client else None,
        )

    async def _handle_subscription_deleted(self, deleted: dict[str, Any]) -> None:
        # A cancelled subscription is replaced by a free one, not left empty.
        customer_id = self._require_customer(deleted)
        created = await self._call(
            "create free subscription",
            self.stripe.create_subscription(
                customer_id,
                self.price_ids.free,
                idempotency_key=free_downgrade_key(deleted),
            ),
        )
        created_customer_id = customer_id_of(created) or customer_id

        billing = BillingRecord(
            customer_id=created_customer_id,
            subscription=Subscription(
                id=created.get("id"),
                end_date=subscription_period_end(created),
                valid=True,
                key=PlanKey.FREE,
            ),
        )
        client = await self._call(
            "update billing",
            self.clients.update_billing_by_customer_id(created_customer_id, billing),
        )

        user_id = client.author_id if client else None
        await self._track(TrackingName.DELETED_SUBSCRIPTION, deleted, user_id)
        await self._track(TrackingName.CREATED_SUBSCRIPTION, dict(created), user_id)

    async def _handle_invoice_payment_failed(self, invoice: dict[str, Any]) -> None:
        customer_id = self._require_customer(invoice)
        current = await self._retrieve_invoice_subscription(invoice)

        status = current.get("status")
        if status != "active":
            await self._call(
                "invalidate client",
                self.clients.update_on_invoice_payment_failed(customer_id),
            )
        else:
            logger.info(
                "Subscription still active after failed payment",
                customer_id=customer_id,
                subscription_id=current.get("id"),
            )

        user_id = await self._lookup_author(customer_id)
        await self._track(TrackingName.FAILED_INVOICE_PAYMENT, invoice, user_id)

    async def _handle_invoice_payment_succeeded(self, invoice: dict[str, Any]) -> None:
        customer_id = self._require_customer(invoice)
        subscription = await self._retrieve_invoice_subscription(invoice)

        client = await self._call(
            "extend client",
            self.clients.update_on_invoice_payment_success(
                customer_id,
                subscription_period_end(subscription),
            ),
        )

        await self._track(
            TrackingName.SUCCESSFUL_INVOICE_PAYMENT,
            invoice,
            client.author_id if client else None,
        )

    # ──────────────────────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────────────────────

    @staticmethod
    def _require_customer(obj: dict[str, Any]) -> str:
        customer_id = customer_id_of(obj)
        if not customer_id:
            raise DownstreamCallError("resolve customer", ValueError("event object has no customer"))
        return customer_id

    async def _retrieve_invoice_subscription(self, invoice: dict[str, Any]) -> Any:
        subscription_id = invoice_subscription_id(invoice)
        if not subscription_id:
            raise DownstreamCallError(
                "retrieve subscription",
                ValueError("invoice has no subscription"),
            )
        return await self._call(
            "retrieve subscription",
            self.stripe.retrieve_subscription(subscription_id),
        )

    @staticmethod
    async def _call(operation: str, call: Awaitable[T]) -> T:
        """Await a primary call; any failure fails the whole delivery."""
        try:
            return await call
        except Exception as e:
            raise DownstreamCallError(operation, e) from e

    async def _lookup_author(self, customer_id: str) -> str | None:
        """Author id for tracking. Lookup failures leave it unresolved."""
        try:
            client = await self.clients.get_by_customer_id(customer_id)
        except Exception as e:
            logger.warning("Client lookup failed", customer_id=customer_id, error=str(e))
            return None
        return client.author_id if client else None

    async def _track(
        self,
        name: TrackingName,
        properties: dict[str, Any],
        user_id: str | None,
    ) -> None:
        """Emit a tracking event. Tracking never affects the outcome."""
        event = TrackingEvent(name=name.value, properties=properties, user_id=user_id)
        try:
            await self.tracking.track(event)
        except Exception as e:
            logger.warning("Tracking failed", tracking_event=event.name, error=str(e))
