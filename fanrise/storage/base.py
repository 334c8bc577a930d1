"""
Storage abstraction layer.

All persistence goes through these interfaces. This allows swapping
implementations (in-memory → MongoDB) without changing application code.

Filters use a Mongo-style subset so that the same query dict works for
every backend:

    {"owner_id": "acct_1"}                                  # equality
    {"$or": [{"username": "a"}, {"email": "a"}]}            # logical OR
    {"title": {"$regex": "rhap", "$options": "i"}}          # pattern
    {"id": {"$in": ["song_1", "song_2"]}}                   # membership
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel


ASCENDING = 1
DESCENDING = -1

SortSpec = list[tuple[str, int]]


# =============================================================================
# Storage Interfaces
# =============================================================================


@dataclass
class IndexSpec:
    """A (possibly compound) index over a collection."""

    keys: SortSpec
    unique: bool = False
    name: str | None = None


class MetadataStorage(ABC):
    """
    Document storage for accounts, songs, playlists.

    Production Implementation: MongoDB
    Local Implementation: in-memory
    """

    @abstractmethod
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Insert or replace a document in a collection."""
        pass

    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        pass

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Get the first document matching filters."""
        pass

    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """Delete a document."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        sort: SortSpec | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Query documents with optional filters, sort and pagination."""
        pass

    @abstractmethod
    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        """Count documents matching filters."""
        pass

    @abstractmethod
    async def update(
        self,
        collection: str,
        id: str,
        updates: dict[str, Any],
        match: dict[str, Any] | None = None,
    ) -> bool:
        """
        Partial update of a document.

        When `match` is given the update only applies if the stored
        document also satisfies it (conditional update). Returns False
        when no document was modified.
        """
        pass

    async def ensure_indexes(self, collection: str, indexes: list[IndexSpec]) -> None:
        """Create indexes if the backend supports them."""
        pass

    async def close(self) -> None:
        """Release connections."""
        pass


class CacheStorage(ABC):
    """
    Fast key-value cache for frequently accessed data.

    Local Implementation: In-memory dict
    """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set a value with optional TTL in seconds."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists."""
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for all storage backends.

    Initialize once at app startup with appropriate implementations.
    Services receive this and use the interfaces without knowing
    the underlying implementation.
    """

    model_config = {"arbitrary_types_allowed": True}

    metadata: MetadataStorage
    cache: CacheStorage


# =============================================================================
# Collection Names (for MetadataStorage)
# =============================================================================


class Collections:
    """Standard collection names."""

    ACCOUNTS = "accounts"
    SONGS = "songs"
    PLAYLISTS = "playlists"
    REFRESH_TOKENS = "refresh_tokens"


INDEXES: dict[str, list[IndexSpec]] = {
    Collections.ACCOUNTS: [
        IndexSpec([("username", ASCENDING)], unique=True),
        IndexSpec([("email", ASCENDING)], unique=True),
    ],
    Collections.SONGS: [
        IndexSpec([("title", ASCENDING)]),
        IndexSpec([("artist", ASCENDING)]),
        IndexSpec([("title", ASCENDING), ("artist", ASCENDING)]),
    ],
    Collections.PLAYLISTS: [
        IndexSpec([("owner_id", ASCENDING), ("created_at", DESCENDING)]),
    ],
    Collections.REFRESH_TOKENS: [
        IndexSpec([("account_id", ASCENDING)]),
    ],
}
