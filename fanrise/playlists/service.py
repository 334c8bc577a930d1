"""
Playlist service - playlist CRUD and song membership.

Every operation is owner-checked: the acting account must be the
playlist's owner. Writes are conditional on the `version` the playlist
was read at, so two concurrent mutations cannot silently overwrite each
other; the loser gets a ConcurrencyError and can retry.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from fanrise.auth.context import AuthContext
from fanrise.catalog.service import SongService
from fanrise.core.errors import (
    ConcurrencyError,
    DuplicateMemberError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from fanrise.core.models import Playlist
from fanrise.core.utils import utc_now
from fanrise.storage.base import DESCENDING, Collections, MetadataStorage

logger = logging.getLogger(__name__)

MAX_PLAYLISTS_PER_LISTING = 1000


class PlaylistService:
    """Owner-gated playlist operations."""

    def __init__(self, metadata: MetadataStorage, songs: SongService):
        self.metadata = metadata
        self.songs = songs

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load(self, playlist_id: str) -> Playlist:
        doc = await self.metadata.get(Collections.PLAYLISTS, playlist_id)
        if not doc:
            raise NotFoundError("Playlist not found")
        return Playlist.model_validate(doc)

    async def _load_owned(self, ctx: AuthContext, playlist_id: str) -> Playlist:
        ctx.require_authenticated()
        playlist = await self._load(playlist_id)
        if not ctx.owns(playlist.owner_id):
            logger.info(f"Account {ctx.account_id} denied access to playlist {playlist_id}")
            raise ForbiddenError("User not authorized")
        return playlist

    async def _write(self, playlist: Playlist, changes: dict[str, Any]) -> Playlist:
        """Apply changes if nobody else wrote since `playlist` was read."""
        changes = {
            **changes,
            "version": playlist.version + 1,
            "updated_at": utc_now(),
        }
        updated = await self.metadata.update(
            Collections.PLAYLISTS,
            playlist.id,
            changes,
            match={"version": playlist.version},
        )
        if not updated:
            if await self.metadata.get(Collections.PLAYLISTS, playlist.id) is None:
                raise NotFoundError("Playlist not found")
            raise ConcurrencyError()
        return playlist.model_copy(update=changes)

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def create(
        self,
        ctx: AuthContext,
        name: str,
        description: str | None = None,
    ) -> Playlist:
        owner_id = ctx.require_authenticated()
        name = (name or "").strip()
        if not name:
            raise ValidationError.for_field("name", "Name is required")

        playlist = Playlist(
            name=name,
            description=description.strip() if description else None,
            owner_id=owner_id,
        )
        await self.metadata.save(Collections.PLAYLISTS, playlist.id, playlist.to_document())
        logger.info(f"Playlist {playlist.id} created by {owner_id}")
        return playlist

    async def list_for(self, ctx: AuthContext) -> list[Playlist]:
        """The caller's playlists, newest first."""
        owner_id = ctx.require_authenticated()
        docs = await self.metadata.query(
            Collections.PLAYLISTS,
            filters={"owner_id": owner_id},
            sort=[("created_at", DESCENDING), ("id", DESCENDING)],
            limit=MAX_PLAYLISTS_PER_LISTING,
        )
        return [Playlist.model_validate(doc) for doc in docs]

    async def get(self, ctx: AuthContext, playlist_id: str) -> Playlist:
        return await self._load_owned(ctx, playlist_id)

    async def update(
        self,
        ctx: AuthContext,
        playlist_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> Playlist:
        """Rename/redescribe. Blank values keep the current value."""
        playlist = await self._load_owned(ctx, playlist_id)
        changes: dict[str, Any] = {}
        if name and name.strip():
            changes["name"] = name.strip()
        if description and description.strip():
            changes["description"] = description.strip()
        return await self._write(playlist, changes)

    async def delete(self, ctx: AuthContext, playlist_id: str) -> None:
        await self._load_owned(ctx, playlist_id)
        await self.metadata.delete(Collections.PLAYLISTS, playlist_id)
        logger.info(f"Playlist {playlist_id} deleted by {ctx.account_id}")

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    async def add_song(self, ctx: AuthContext, playlist_id: str, song_id: str) -> Playlist:
        """Append a song. Adding a song twice is an error, not a no-op."""
        playlist = await self._load_owned(ctx, playlist_id)
        if song_id in playlist.songs:
            raise DuplicateMemberError()
        if not await self.songs.exists(song_id):
            raise NotFoundError("Song not found")
        return await self._write(playlist, {"songs": [*playlist.songs, song_id]})

    async def remove_song(self, ctx: AuthContext, playlist_id: str, song_id: str) -> Playlist:
        playlist = await self._load_owned(ctx, playlist_id)
        if song_id not in playlist.songs:
            raise NotFoundError("Song not in playlist")
        songs = list(playlist.songs)
        songs.remove(song_id)
        return await self._write(playlist, {"songs": songs})

    async def reorder(
        self,
        ctx: AuthContext,
        playlist_id: str,
        ordered_song_ids: list[str],
    ) -> Playlist:
        """Replace the song order. The new order must be a permutation."""
        playlist = await self._load_owned(ctx, playlist_id)
        if Counter(ordered_song_ids) != Counter(playlist.songs):
            raise ValidationError.for_field(
                "songIds",
                "Song order must contain exactly the songs already in the playlist",
            )
        return await self._write(playlist, {"songs": list(ordered_song_ids)})
