"""
Core data models for the fanrise API.

These models represent the fundamental entities: Accounts, Songs and
Playlists. JSON uses camelCase (`releaseYear`, `createdAt`); stored
documents use the snake_case field names.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from fanrise.core.utils import generate_id, utc_now


MIN_RELEASE_YEAR = 1900


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python and storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Dump for persistence (field names, not aliases)."""
        return self.model_dump()


# =============================================================================
# Account
# =============================================================================


class Account(CamelModel):
    """
    A registered account.

    `password_hash` is only ever read by the auth service. Anything
    returned to a client goes through `to_response()`.
    """

    id: str = Field(default_factory=lambda: generate_id("acct"))
    username: str
    email: str
    password_hash: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_response(self) -> AccountResponse:
        return AccountResponse(
            id=self.id,
            username=self.username,
            email=self.email,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class AccountResponse(CamelModel):
    """Account data returned to clients (no password hash)."""

    id: str
    username: str
    email: str
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Song
# =============================================================================


def _check_release_year(value: int | None) -> int | None:
    if value is None:
        return value
    current_year = utc_now().year
    if not MIN_RELEASE_YEAR <= value <= current_year:
        raise ValueError(
            f"Year must be a valid year between {MIN_RELEASE_YEAR} and current year"
        )
    return value


class SongFields(CamelModel):
    """Editable song attributes, shared by create/replace requests and Song."""

    title: str
    artist: str
    album: str | None = None
    genre: str | None = None
    duration: int | None = Field(default=None, ge=0)  # seconds
    release_year: int | None = None
    audio_url: str | None = None
    cover_image_url: str | None = None

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Song title is required")
        return value

    @field_validator("artist")
    @classmethod
    def _artist_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Artist name is required")
        return value

    @field_validator("release_year")
    @classmethod
    def _release_year_range(cls, value: int | None) -> int | None:
        return _check_release_year(value)


class SongPatch(CamelModel):
    """Partial song update. Only fields present in the request are applied."""

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    genre: str | None = None
    duration: int | None = Field(default=None, ge=0)
    release_year: int | None = None
    audio_url: str | None = None
    cover_image_url: str | None = None

    @field_validator("title", "artist")
    @classmethod
    def _not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Field cannot be empty")
        return value

    @field_validator("release_year")
    @classmethod
    def _release_year_range(cls, value: int | None) -> int | None:
        return _check_release_year(value)

    @model_validator(mode="after")
    def _required_not_cleared(self) -> SongPatch:
        # Sent as null means "clear it", which title and artist can't be
        for name, message in (
            ("title", "Song title is required"),
            ("artist", "Artist name is required"),
        ):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(message)
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class Song(SongFields):
    """A catalog entry."""

    id: str = Field(default_factory=lambda: generate_id("song"))
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# Playlist
# =============================================================================


class Playlist(CamelModel):
    """
    A user-curated, ordered list of songs.

    The owner is fixed at creation. `songs` never contains duplicates.
    `version` is bumped on every write and used for conditional updates.
    """

    id: str = Field(default_factory=lambda: generate_id("pl"))
    name: str
    description: str | None = None
    owner_id: str = Field(alias="user")
    songs: list[str] = Field(default_factory=list)
    version: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
