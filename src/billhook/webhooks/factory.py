"""Wire a dispatcher from settings at startup."""

import structlog

from billhook.config import Settings
from billhook.db import (
    Collection,
    LocalCachePublisher,
    MemoryDocumentStore,
    RedisCachePublisher,
    RedisDocumentStore,
)
from billhook.integrations.clients import ClientServiceClient
from billhook.integrations.stripe import StripeClient
from billhook.integrations.tracking import TrackingClient
from billhook.services.clients import ClientRecords, ClientRecordService

from .dispatcher import WebhookDispatcher
from .verifier import SignatureVerifier

logger = structlog.get_logger()


async def build_client_records(settings: Settings) -> ClientRecords:
    """Client-record implementation for the configured backend."""
    if settings.clients_backend == "remote":
        return ClientServiceClient(
            settings.clients_service_url,
            timeout=settings.http_timeout_seconds,
        )

    if settings.clients_backend == "redis":
        from billhook.db.redis import get_redis

        redis_client = await get_redis()
        collection = Collection(
            settings.clients_collection,
            RedisDocumentStore(redis_client, settings.clients_collection),
            RedisCachePublisher(redis_client),
        )
    else:
        collection = Collection(
            settings.clients_collection,
            MemoryDocumentStore(),
            LocalCachePublisher(),
        )

    return ClientRecordService(collection)


async def build_dispatcher(settings: Settings) -> WebhookDispatcher:
    """Create a dispatcher with collaborators configured from settings."""
    if not settings.stripe_webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set; every delivery will be rejected")

    dispatcher = WebhookDispatcher(
        verifier=SignatureVerifier(
            settings.stripe_webhook_secret,
            tolerance=settings.stripe_webhook_tolerance,
        ),
        stripe_client=StripeClient(settings.stripe_secret_key),
        clients=await build_client_records(settings),
        tracking=TrackingClient(
            settings.tracking_service_url,
            timeout=settings.http_timeout_seconds,
            enabled=settings.tracking_enabled,
        ),
        price_ids=settings.known_price_ids,
    )

    logger.info(
        "Webhook dispatcher ready",
        clients_backend=settings.clients_backend,
        tracking_enabled=settings.tracking_enabled,
    )
    return dispatcher
