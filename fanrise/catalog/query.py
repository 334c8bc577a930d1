"""
Catalog query engine - paginated, filtered, sorted song listing.

Results are memoized in the cache for a fixed TTL keyed by the exact
normalized query. Entries are NOT invalidated on writes: a newly created
or edited song can be missing from cached listings for up to the TTL.
That staleness is accepted for catalog browsing; single-song reads and
playlist operations never go through this cache.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from fanrise.core.models import CamelModel, Song
from fanrise.core.utils import positive_int
from fanrise.storage.base import (
    ASCENDING,
    DESCENDING,
    CacheStorage,
    Collections,
    MetadataStorage,
    SortSpec,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_SORT_FIELD = "title"
MAX_OFFSET = 2**31

# Public sort names (camelCase or snake_case) → stored field
SORT_FIELDS: dict[str, str] = {
    "title": "title",
    "artist": "artist",
    "album": "album",
    "genre": "genre",
    "duration": "duration",
    "releaseYear": "release_year",
    "release_year": "release_year",
    "createdAt": "created_at",
    "created_at": "created_at",
}

# Tie-breaker so pages never overlap when the sort field has duplicates
TIEBREAK_FIELD = "id"


def search_filter(text: str | None) -> dict[str, Any]:
    """Case-insensitive substring match on title OR artist."""
    text = (text or "").strip()
    if not text:
        return {}
    pattern = re.escape(text)
    return {
        "$or": [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"artist": {"$regex": pattern, "$options": "i"}},
        ]
    }


# =============================================================================
# Query
# =============================================================================


@dataclass(frozen=True)
class SongQuery:
    """A normalized listing request. Build it with `SongQuery.normalize`."""

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    search: str = ""
    sort_field: str = DEFAULT_SORT_FIELD
    sort_direction: str = "asc"

    @classmethod
    def normalize(
        cls,
        page: Any = None,
        page_size: Any = None,
        search: str | None = None,
        sort_field: str | None = None,
        sort_direction: str | None = None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int | None = None,
    ) -> SongQuery:
        """
        Lenient normalization: bad numbers fall back to defaults, unknown
        sort fields fall back to title, anything but "desc" is ascending.
        """
        size = positive_int(page_size, default_page_size)
        if max_page_size:
            size = min(size, max_page_size)
        # Keep the skip inside what the store can encode; still past any real data
        page_number = min(positive_int(page, DEFAULT_PAGE), MAX_OFFSET // size + 1)
        return cls(
            page=page_number,
            page_size=size,
            search=(search or "").strip(),
            sort_field=SORT_FIELDS.get(sort_field or "", DEFAULT_SORT_FIELD),
            sort_direction="desc" if (sort_direction or "").lower() == "desc" else "asc",
        )

    @property
    def cache_key(self) -> str:
        return (
            f"songs:{self.page}:{self.page_size}:{self.search}"
            f":{self.sort_field}:{self.sort_direction}"
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def filters(self) -> dict[str, Any]:
        return search_filter(self.search)

    def sort(self) -> SortSpec:
        direction = DESCENDING if self.sort_direction == "desc" else ASCENDING
        return [(self.sort_field, direction), (TIEBREAK_FIELD, ASCENDING)]


class SongPage(CamelModel):
    """One page of the catalog listing."""

    items: list[Song]
    page: int
    page_size: int
    total_pages: int
    total_items: int


# =============================================================================
# Engine
# =============================================================================


class CatalogQueryEngine:
    """
    Runs song listings against the store, with a TTL cache in front.

    Concurrent misses for the same key share one in-flight store query.
    """

    def __init__(
        self,
        metadata: MetadataStorage,
        cache: CacheStorage,
        ttl_seconds: int = 300,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int | None = 100,
    ):
        self.metadata = metadata
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self._in_flight: dict[str, asyncio.Task[SongPage]] = {}

    async def list_songs(
        self,
        page: Any = None,
        page_size: Any = None,
        search_text: str | None = None,
        sort_field: str | None = None,
        sort_direction: str | None = None,
    ) -> SongPage:
        query = SongQuery.normalize(
            page=page,
            page_size=page_size,
            search=search_text,
            sort_field=sort_field,
            sort_direction=sort_direction,
            default_page_size=self.default_page_size,
            max_page_size=self.max_page_size,
        )
        return await self.run(query)

    async def run(self, query: SongQuery) -> SongPage:
        key = query.cache_key

        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_cache(query))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))

        # A cancelled caller must not cancel the query other callers share
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[SongPage]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _fetch_and_cache(self, query: SongQuery) -> SongPage:
        page = await self.fetch(query)
        # A TTL of 0 or less turns caching off
        if self.ttl_seconds > 0:
            await self.cache.set(query.cache_key, page, ttl=self.ttl_seconds)
        return page

    async def fetch(self, query: SongQuery) -> SongPage:
        """Uncached listing straight from the store."""
        filters = query.filters()
        total_items = await self.metadata.count(Collections.SONGS, filters)
        docs = await self.metadata.query(
            Collections.SONGS,
            filters=filters,
            sort=query.sort(),
            limit=query.page_size,
            offset=query.offset,
        )
        logger.debug(f"Catalog query {query.cache_key}: {len(docs)}/{total_items}")
        return SongPage(
            items=[Song.model_validate(doc) for doc in docs],
            page=query.page,
            page_size=query.page_size,
            total_pages=math.ceil(total_items / query.page_size),
            total_items=total_items,
        )
