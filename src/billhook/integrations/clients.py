"""
Clients Service Integration

HTTP client for the remote client-record service that owns billing records.
"""

from typing import Any

import httpx
import structlog

from billhook.core.models import BillingRecord, Client

logger = structlog.get_logger()


class ClientServiceClient:
    """
    HTTP client for the clients service actions.

    Usage:
        clients = ClientServiceClient("http://clients:3001")
        client = await clients.get_by_customer_id("cus_123")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _call(self, action: str, params: dict[str, Any]) -> Client | None:
        """Invoke a clients service action; a 404 or empty body yields None."""
        client = await self._get_client()
        try:
            response = await client.post(f"/v1/clients/{action}", json=params)
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Clients service call failed", action=action, error=str(e))
            raise

        if not response.content:
            return None
        data = response.json()
        return Client.model_validate(data) if data else None

    # ──────────────────────────────────────────────────────────
    # Client Operations
    # ──────────────────────────────────────────────────────────

    async def update_billing_by_customer_id(
        self, customer_id: str, billing: BillingRecord
    ) -> Client | None:
        """Overwrite the billing record of a customer."""
        return await self._call(
            "updateBillingByCustomerId",
            {"customerId": customer_id, "billing": billing.to_document()},
        )

    async def update_on_invoice_payment_failed(self, customer_id: str) -> None:
        """Mark a customer's subscription as no longer valid."""
        await self._call("updateOnInvoicePaymentFailed", {"customerId": customer_id})

    async def update_on_invoice_payment_success(
        self, customer_id: str, end_date: int | None
    ) -> Client | None:
        """Extend a customer's subscription to the new period end."""
        return await self._call(
            "updateOnInvoicePaymentSuccess",
            {"customerId": customer_id, "endDate": end_date},
        )

    async def get_by_customer_id(self, customer_id: str) -> Client | None:
        """Get client by Stripe customer ID."""
        return await self._call("getByCustomerId", {"customerId": customer_id})
