"""
Database Module

Document storage for client records: memory or Redis backends behind a
narrow interface, with explicit cache-invalidation events.
"""

from .collection import (
    CachePublisher,
    Collection,
    LocalCachePublisher,
    RedisCachePublisher,
)
from .store import (
    Document,
    DocumentStore,
    MemoryDocumentStore,
    RedisDocumentStore,
)

__all__ = [
    "CachePublisher",
    "Collection",
    "Document",
    "DocumentStore",
    "LocalCachePublisher",
    "MemoryDocumentStore",
    "RedisCachePublisher",
    "RedisDocumentStore",
]
