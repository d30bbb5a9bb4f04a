"""
Client Record Service

The contract the webhook dispatcher needs from client records, and a local
implementation of it over a document collection.
"""

from typing import Any, Protocol

import structlog

from billhook.core.models import BillingRecord, Client
from billhook.db import Collection, Document

logger = structlog.get_logger()


class ClientRecords(Protocol):
    """Client-record operations consumed by the dispatcher."""

    async def update_billing_by_customer_id(
        self, customer_id: str, billing: BillingRecord
    ) -> Client | None: ...

    async def update_on_invoice_payment_failed(self, customer_id: str) -> None: ...

    async def update_on_invoice_payment_success(
        self, customer_id: str, end_date: int | None
    ) -> Client | None: ...

    async def get_by_customer_id(self, customer_id: str) -> Client | None: ...


def client_key(doc: Document) -> str:
    """Documents are keyed by Stripe customer id."""
    return doc.get("customerId") or doc["_id"]


class ClientRecordService:
    """
    Client records persisted in a local collection.

    Clients are created elsewhere (or seeded); webhook updates only touch
    customers that already have a record.
    """

    def __init__(self, collection: Collection):
        self.collection = collection

    async def _load(self, customer_id: str) -> Document | None:
        doc = await self.collection.get(customer_id)
        if doc is None:
            logger.warning("No client for customer", customer_id=customer_id)
        return doc

    async def update_billing_by_customer_id(
        self, customer_id: str, billing: BillingRecord
    ) -> Client | None:
        """Replace the billing record wholesale."""
        doc = await self._load(customer_id)
        if doc is None:
            return None

        doc["billing"] = billing.to_document()
        await self.collection.put(customer_id, doc)
        logger.info("Updated client billing", customer_id=customer_id)
        return Client.model_validate(doc)

    async def update_on_invoice_payment_failed(self, customer_id: str) -> None:
        """Flag the current subscription as invalid."""
        doc = await self._load(customer_id)
        subscription = _subscription(doc)
        if subscription is None:
            return

        subscription["valid"] = False
        await self.collection.put(customer_id, doc)
        logger.info("Invalidated client subscription", customer_id=customer_id)

    async def update_on_invoice_payment_success(
        self, customer_id: str, end_date: int | None
    ) -> Client | None:
        """Mark the subscription valid until the new period end."""
        doc = await self._load(customer_id)
        if doc is None:
            return None

        subscription = _subscription(doc)
        if subscription is not None:
            subscription["valid"] = True
            subscription["endDate"] = end_date
            await self.collection.put(customer_id, doc)
            logger.info("Extended client subscription", customer_id=customer_id)

        return Client.model_validate(doc)

    async def get_by_customer_id(self, customer_id: str) -> Client | None:
        doc = await self.collection.get(customer_id)
        return Client.model_validate(doc) if doc else None

    async def seed(self, docs: list[Document]) -> int:
        """Seed the collection when it is empty."""
        return await self.collection.seed_if_empty(docs, key=client_key)


def _subscription(doc: Document | None) -> dict[str, Any] | None:
    if not doc:
        return None
    billing = doc.get("billing") or {}
    return billing.get("subscription")
