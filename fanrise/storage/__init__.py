"""
Storage abstractions.

- MetadataStorage → MongoDB (production) or in-memory (development/tests)
- CacheStorage → in-memory TTL cache
"""

from __future__ import annotations

from fanrise.config import Settings
from fanrise.storage.base import (
    ASCENDING,
    DESCENDING,
    INDEXES,
    CacheStorage,
    Collections,
    IndexSpec,
    MetadataStorage,
    SortSpec,
    StorageProvider,
)
from fanrise.storage.local import (
    InMemoryCacheStorage,
    InMemoryMetadataStorage,
    create_local_storage,
)


def create_storage(settings: Settings) -> StorageProvider:
    """Pick the storage backend from settings."""
    if not settings.use_mongo:
        return create_local_storage()

    from fanrise.storage.mongo import MongoMetadataStorage

    return StorageProvider(
        metadata=MongoMetadataStorage(settings.mongodb_uri, settings.mongodb_database),
        cache=InMemoryCacheStorage(),
    )


async def ensure_all_indexes(storage: StorageProvider) -> None:
    """Create every index declared in INDEXES."""
    for collection, indexes in INDEXES.items():
        await storage.metadata.ensure_indexes(collection, indexes)


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "INDEXES",
    "CacheStorage",
    "Collections",
    "IndexSpec",
    "InMemoryCacheStorage",
    "InMemoryMetadataStorage",
    "MetadataStorage",
    "SortSpec",
    "StorageProvider",
    "create_local_storage",
    "create_storage",
    "ensure_all_indexes",
]
