"""
Document Store Backends

A narrow storage interface for JSON documents keyed by id, implemented once
per backend.
"""

from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any

import orjson
import redis.asyncio as redis


Document = dict[str, Any]


class DocumentStore(ABC):
    """Key/document storage for a single collection."""

    @abstractmethod
    async def get(self, doc_id: str) -> Document | None:
        """Get a document by id."""

    @abstractmethod
    async def put(self, doc_id: str, doc: Document) -> None:
        """Insert or fully replace a document."""

    @abstractmethod
    async def count(self) -> int:
        """Number of stored documents."""


class MemoryDocumentStore(DocumentStore):
    """In-process store. Documents are copied in and out."""

    def __init__(self) -> None:
        self._docs: dict[str, Document] = {}

    async def get(self, doc_id: str) -> Document | None:
        doc = self._docs.get(doc_id)
        return deepcopy(doc) if doc is not None else None

    async def put(self, doc_id: str, doc: Document) -> None:
        self._docs[doc_id] = deepcopy(doc)

    async def count(self) -> int:
        return len(self._docs)


class RedisDocumentStore(DocumentStore):
    """Stores a collection as one Redis hash of JSON documents."""

    def __init__(self, client: redis.Redis, collection: str, prefix: str = "billhook"):
        self.client = client
        self.key = f"{prefix}:{collection}"

    async def get(self, doc_id: str) -> Document | None:
        raw = await self.client.hget(self.key, doc_id)
        return orjson.loads(raw) if raw else None

    async def put(self, doc_id: str, doc: Document) -> None:
        await self.client.hset(self.key, doc_id, orjson.dumps(doc).decode("utf-8"))

    async def count(self) -> int:
        return await self.client.hlen(self.key)
