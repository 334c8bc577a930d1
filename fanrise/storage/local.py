"""
Local storage implementations for development.

These are in-memory implementations that work without any external
services. The metadata store understands the same filter subset as the
MongoDB backend so services behave identically on both.
"""

from __future__ import annotations

import copy
import re
import time
from typing import Any, Callable

from fanrise.storage.base import (
    CacheStorage,
    MetadataStorage,
    SortSpec,
    StorageProvider,
)


# =============================================================================
# Filter Matching
# =============================================================================


def _match_operator(value: Any, op: str, arg: Any, options: str) -> bool:
    if op == "$regex":
        if not isinstance(value, str):
            return False
        flags = re.IGNORECASE if "i" in options else 0
        return re.search(arg, value, flags) is not None
    if op == "$in":
        if isinstance(value, list):
            return any(v in arg for v in value)
        return value in arg
    if op == "$ne":
        return value != arg
    raise ValueError(f"Unsupported filter operator: {op}")


def matches(doc: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    """Check a document against a Mongo-style filter dict."""
    if not filters:
        return True

    for key, condition in filters.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
            continue
        if key == "$and":
            if not all(matches(doc, sub) for sub in condition):
                return False
            continue

        value = doc.get(key)

        if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
            options = condition.get("$options", "")
            for op, arg in condition.items():
                if op == "$options":
                    continue
                if not _match_operator(value, op, arg, options):
                    return False
        elif isinstance(value, list) and not isinstance(condition, list):
            if condition not in value:
                return False
        elif value != condition:
            return False

    return True


def _sort_key(field: str) -> Callable[[dict[str, Any]], tuple[bool, Any]]:
    # Missing/None values sort first, as in MongoDB
    def key(doc: dict[str, Any]) -> tuple[bool, Any]:
        value = doc.get(field)
        return (value is not None, value if value is not None else 0)
    return key


def apply_sort(docs: list[dict[str, Any]], sort: SortSpec | None) -> list[dict[str, Any]]:
    """Multi-key sort; relies on sort stability, so keys apply last to first."""
    if not sort:
        return docs
    for field, direction in reversed(sort):
        docs.sort(key=_sort_key(field), reverse=direction < 0)
    return docs


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory document storage for development and tests."""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}

    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        if collection not in self._data:
            self._data[collection] = {}
        self._data[collection][id] = {**copy.deepcopy(data), "_id": id}

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        for doc in self._data.get(collection, {}).values():
            if matches(doc, filters):
                return copy.deepcopy(doc)
        return None

    async def delete(self, collection: str, id: str) -> bool:
        if collection in self._data and id in self._data[collection]:
            del self._data[collection][id]
            return True
        return False

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        sort: SortSpec | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        if collection not in self._data:
            return []

        results = [doc for doc in self._data[collection].values() if matches(doc, filters)]
        results = apply_sort(results, sort)

        # Apply pagination
        return copy.deepcopy(results[offset:offset + limit])

    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        return sum(
            1 for doc in self._data.get(collection, {}).values() if matches(doc, filters)
        )

    async def update(
        self,
        collection: str,
        id: str,
        updates: dict[str, Any],
        match: dict[str, Any] | None = None,
    ) -> bool:
        doc = self._data.get(collection, {}).get(id)
        if doc is None or not matches(doc, match):
            return False
        doc.update(copy.deepcopy(updates))
        return True


# =============================================================================
# In-Memory Cache Storage
# =============================================================================


class InMemoryCacheStorage(CacheStorage):
    """In-memory cache for development."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._cache: dict[str, tuple[Any, float | None]] = {}
        self._clock = clock

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self.evict_expired()
        expires_at = None
        if ttl is not None:
            expires_at = self._clock() + ttl
        self._cache[key] = (value, expires_at)

    def evict_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [
            key for key, (_, expires_at) in self._cache.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._cache[key]
        return len(expired)

    async def get(self, key: str) -> Any | None:
        if key not in self._cache:
            return None

        value, expires_at = self._cache[key]
        if expires_at is not None and self._clock() >= expires_at:
            del self._cache[key]
            return None

        return value

    async def delete(self, key: str) -> bool:
        if key in self._cache:
            del self._cache[key]
            return True
        return False

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> StorageProvider:
    """Create a StorageProvider with in-memory implementations."""
    return StorageProvider(
        metadata=InMemoryMetadataStorage(),
        cache=InMemoryCacheStorage(),
    )
