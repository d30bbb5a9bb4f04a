"""
Unit Tests for Dispatcher Wiring

Tests collaborators are chosen from settings.
"""

import pytest
from unittest.mock import AsyncMock, patch

from billhook.db import RedisDocumentStore
from billhook.integrations import ClientServiceClient, TrackingClient
from billhook.services import ClientRecordService
from billhook.webhooks import WebhookDispatcher, build_client_records, build_dispatcher


class TestBuildClientRecords:
    """Test build_client_records."""

    @pytest.mark.asyncio
    async def test_remote(self, test_settings):
        test_settings.clients_backend = "remote"
        test_settings.clients_service_url = "http://clients:3001/"

        records = await build_client_records(test_settings)

        assert isinstance(records, ClientServiceClient)
        assert records.base_url == "http://clients:3001"

    @pytest.mark.asyncio
    async def test_memory(self, test_settings):
        records = await build_client_records(test_settings)

        assert isinstance(records, ClientRecordService)
        assert records.collection.name == "clients"

    @pytest.mark.asyncio
    async def test_redis(self, test_settings):
        test_settings.clients_backend = "redis"
        redis_client = AsyncMock()

        with patch("billhook.db.redis.get_redis", AsyncMock(return_value=redis_client)):
            records = await build_client_records(test_settings)

        assert isinstance(records.collection.store, RedisDocumentStore)
        assert records.collection.store.client is redis_client


class TestBuildDispatcher:
    """Test build_dispatcher."""

    @pytest.mark.asyncio
    async def test_wires_settings(self, test_settings):
        dispatcher = await build_dispatcher(test_settings)

        assert isinstance(dispatcher, WebhookDispatcher)
        assert dispatcher.verifier.secret == "whsec_test_secret"
        assert dispatcher.verifier.tolerance == 300
        assert dispatcher.stripe.api_key == "sk_test_123"
        assert dispatcher.price_ids.growth == "price_growth"
        assert dispatcher.price_ids.cheap == "price_cheap"
        assert dispatcher.price_ids.free == "price_free"
        assert isinstance(dispatcher.tracking, TrackingClient)

    @pytest.mark.asyncio
    async def test_tracking_disabled(self, test_settings):
        test_settings.tracking_enabled = False

        dispatcher = await build_dispatcher(test_settings)

        assert dispatcher.tracking.enabled is False
