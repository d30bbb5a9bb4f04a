"""
Tracking Service Integration

Best-effort analytics emission. Failures are logged and never raised.
"""

import httpx
import structlog

from billhook.core.models import TrackingEvent

logger = structlog.get_logger()


class TrackingClient:
    """HTTP client for the public tracking endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        enabled: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.enabled = enabled
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

    async def track(self, event: TrackingEvent) -> bool:
        """Send a tracking event. Returns whether it was accepted."""
        if not self.enabled:
            logger.debug("Tracking disabled, dropping event", tracking_event=event.name)
            return False

        try:
            client = await self._get_client()
            response = await client.post(
                "/v1/tracking/public/track",
                json={
                    "path": "t",
                    "data": {
                        "event": event.name,
                        "properties": event.properties,
                        "userId": event.user_id,
                    },
                },
            )
            response.raise_for_status()

            logger.info("Tracked event", tracking_event=event.name, user_id=event.user_id)
            return True

        except Exception as e:
            logger.warning("Failed to track event", tracking_event=event.name, error=str(e))
            return False
