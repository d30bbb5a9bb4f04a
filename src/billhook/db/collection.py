"""
Collections

Wraps a document store with seeding on first start and a cache-clean event
published after every mutation.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

import orjson
import redis.asyncio as redis
import structlog

from .store import Document, DocumentStore

logger = structlog.get_logger()


# ══════════════════════════════════════════════════════════════
# Cache Invalidation Publishers
# ══════════════════════════════════════════════════════════════


class CachePublisher(ABC):
    """Delivers cache-clean events to whoever caches collection reads."""

    @abstractmethod
    async def publish(self, channel: str, message: dict[str, Any]) -> None:
        """Publish one event."""


Listener = Callable[[str, dict[str, Any]], Awaitable[None]]


class LocalCachePublisher(CachePublisher):
    """Fans events out to in-process listeners."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def publish(self, channel: str, message: dict[str, Any]) -> None:
        for listener in self._listeners:
            await listener(channel, message)


class RedisCachePublisher(CachePublisher):
    """Publishes events on a Redis pub/sub channel."""

    def __init__(self, client: redis.Redis):
        self.client = client

    async def publish(self, channel: str, message: dict[str, Any]) -> None:
        await self.client.publish(channel, orjson.dumps(message).decode("utf-8"))


# ══════════════════════════════════════════════════════════════
# Collection
# ══════════════════════════════════════════════════════════════


class Collection:
    """A named collection of documents."""

    def __init__(
        self,
        name: str,
        store: DocumentStore,
        publisher: CachePublisher | None = None,
    ):
        self.name = name
        self.store = store
        self.publisher = publisher or LocalCachePublisher()

    @property
    def cache_clean_event(self) -> str:
        return f"cache.clean.{self.name}"

    async def get(self, doc_id: str) -> Document | None:
        return await self.store.get(doc_id)

    async def put(self, doc_id: str, doc: Document, change: str = "updated") -> Document:
        """Write a document, then announce the change."""
        await self.store.put(doc_id, doc)
        await self.entity_changed(change, doc_id)
        return doc

    async def count(self) -> int:
        return await self.store.count()

    async def entity_changed(self, change: str, doc_id: str) -> None:
        """Publish a cache-clean event for a changed document."""
        await self.publisher.publish(
            self.cache_clean_event,
            {"type": change, "id": doc_id},
        )

    async def seed_if_empty(
        self,
        docs: list[Document],
        key: Callable[[Document], str],
    ) -> int:
        """
        Seed an empty collection.

        Returns:
            Number of documents written (0 when the collection had data)
        """
        if await self.count() > 0:
            return 0

        logger.info(
            "Collection is empty, seeding",
            collection=self.name,
        )
        for doc in docs:
            await self.put(key(doc), doc, change="created")

        logger.info(
            "Seeding is done",
            collection=self.name,
            records=await self.count(),
        )
        return len(docs)
