"""
Song service - catalog CRUD and quick search.

Ownership: with `enforce_ownership` on (the default) only the account that
created a song may edit or delete it, the same rule playlists follow.
Switching it off restores the permissive behaviour where any signed-in
account may modify any song.
"""

from __future__ import annotations

import logging

from fanrise.auth.context import AuthContext
from fanrise.catalog.query import search_filter
from fanrise.core.errors import NotFoundError, ValidationError
from fanrise.core.models import Song, SongFields, SongPatch
from fanrise.core.utils import utc_now
from fanrise.storage.base import ASCENDING, Collections, MetadataStorage

logger = logging.getLogger(__name__)


class SongService:
    """Create, read, update, delete and search songs."""

    def __init__(
        self,
        metadata: MetadataStorage,
        enforce_ownership: bool = True,
        search_limit: int = 10,
    ):
        self.metadata = metadata
        self.enforce_ownership = enforce_ownership
        self.search_limit = search_limit

    async def get(self, song_id: str) -> Song:
        doc = await self.metadata.get(Collections.SONGS, song_id)
        if not doc:
            raise NotFoundError("Song not found")
        return Song.model_validate(doc)

    async def exists(self, song_id: str) -> bool:
        return await self.metadata.get(Collections.SONGS, song_id) is not None

    async def create(self, ctx: AuthContext, data: SongFields) -> Song:
        song = Song(**data.model_dump(), created_by=ctx.require_authenticated())
        await self.metadata.save(Collections.SONGS, song.id, song.to_document())
        logger.info(f"Song {song.id} created by {ctx.account_id}")
        return song

    def _check_can_modify(self, ctx: AuthContext, song: Song) -> None:
        ctx.require_authenticated()
        if self.enforce_ownership:
            ctx.require_owner(song.created_by)

    async def replace(self, ctx: AuthContext, song_id: str, data: SongFields) -> Song:
        """Full update: every editable field is overwritten."""
        song = await self.get(song_id)
        self._check_can_modify(ctx, song)
        return await self._apply(song, data.model_dump())

    async def patch(self, ctx: AuthContext, song_id: str, data: SongPatch) -> Song:
        """Partial update: only fields sent by the client change."""
        song = await self.get(song_id)
        self._check_can_modify(ctx, song)
        return await self._apply(song, data.changes())

    async def _apply(self, song: Song, changes: dict) -> Song:
        changes = {**changes, "updated_at": utc_now()}
        updated = await self.metadata.update(Collections.SONGS, song.id, changes)
        if not updated:
            raise NotFoundError("Song not found")
        return song.model_copy(update=changes)

    async def delete(self, ctx: AuthContext, song_id: str) -> None:
        song = await self.get(song_id)
        self._check_can_modify(ctx, song)
        await self.metadata.delete(Collections.SONGS, song_id)
        logger.info(f"Song {song_id} deleted by {ctx.account_id}")

    async def search(self, query: str | None) -> list[Song]:
        """Substring search over title/artist, capped at `search_limit`."""
        if not query or not query.strip():
            raise ValidationError.for_field("query", "Search query is required")
        docs = await self.metadata.query(
            Collections.SONGS,
            filters=search_filter(query),
            sort=[("title", ASCENDING), ("id", ASCENDING)],
            limit=self.search_limit,
        )
        return [Song.model_validate(doc) for doc in docs]
