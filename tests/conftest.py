"""
Pytest Configuration and Fixtures

Shared fixtures for unit tests.
"""

import json
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from billhook.config import Settings
from billhook.core.models import Author, Client, KnownPriceIds, WebhookEnvelope
from billhook.webhooks import SignatureVerifier, WebhookDispatcher, sign_payload


WEBHOOK_SECRET = "whsec_test_secret"
GROWTH_PRICE = "price_growth"
CHEAP_PRICE = "price_cheap"
FREE_PRICE = "price_free"


# ══════════════════════════════════════════════════════════════
# Settings Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with in-memory configuration."""
    return Settings(
        app_env="development",
        debug=True,
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        stripe_growth_plan_price_id=GROWTH_PRICE,
        stripe_ridiculously_cheap_plan_price_id=CHEAP_PRICE,
        stripe_free_plan_price_id=FREE_PRICE,
        clients_backend="memory",
        redis_url="redis://localhost:6379/15",
    )


@pytest.fixture
def price_ids() -> KnownPriceIds:
    return KnownPriceIds(growth=GROWTH_PRICE, cheap=CHEAP_PRICE, free=FREE_PRICE)


# ══════════════════════════════════════════════════════════════
# Collaborator Mocks
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def author_client() -> Client:
    """A client owned by author user-1."""
    return Client(id="client-1", customer_id="cus_1", author=Author(id="user-1"))


@pytest.fixture
def mock_stripe() -> MagicMock:
    stripe_client = MagicMock()
    stripe_client.retrieve_subscription = AsyncMock()
    stripe_client.create_subscription = AsyncMock()
    return stripe_client


@pytest.fixture
def mock_clients(author_client) -> MagicMock:
    clients = MagicMock()
    clients.update_billing_by_customer_id = AsyncMock(return_value=author_client)
    clients.update_on_invoice_payment_failed = AsyncMock(return_value=None)
    clients.update_on_invoice_payment_success = AsyncMock(return_value=author_client)
    clients.get_by_customer_id = AsyncMock(return_value=author_client)
    return clients


@pytest.fixture
def mock_tracking() -> MagicMock:
    tracking = MagicMock()
    tracking.track = AsyncMock(return_value=True)
    return tracking


@pytest.fixture
def dispatcher(mock_stripe, mock_clients, mock_tracking, price_ids) -> WebhookDispatcher:
    return WebhookDispatcher(
        verifier=SignatureVerifier(WEBHOOK_SECRET),
        stripe_client=mock_stripe,
        clients=mock_clients,
        tracking=mock_tracking,
        price_ids=price_ids,
    )


# ══════════════════════════════════════════════════════════════
# Payload Fixtures
# ══════════════════════════════════════════════════════════════


def event_payload(event_type: str, obj: dict[str, Any], event_id: str = "evt_1") -> bytes:
    """Serialize a Stripe event body."""
    return json.dumps(
        {"id": event_id, "object": "event", "type": event_type, "data": {"object": obj}}
    ).encode("utf-8")


@pytest.fixture
def signed_envelope() -> Callable[..., WebhookEnvelope]:
    """Build a correctly signed delivery for an event."""

    def build(event_type: str, obj: dict[str, Any]) -> WebhookEnvelope:
        raw_body = event_payload(event_type, obj)
        return WebhookEnvelope(
            raw_body=raw_body,
            signature=sign_payload(raw_body, WEBHOOK_SECRET),
        )

    return build
