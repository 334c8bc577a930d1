"""
Core module - data models, error taxonomy and shared helpers.

This module contains:
- models: Account, Song, Playlist
- errors: Exceptions surfaced to API callers
- utils: Shared utility functions
"""

from fanrise.core.models import (
    Account,
    AccountResponse,
    Playlist,
    Song,
    SongFields,
    SongPatch,
)
from fanrise.core.errors import (
    AccountNotFoundError,
    ConcurrencyError,
    ConflictError,
    DuplicateMemberError,
    ErrorCode,
    FanriseError,
    ForbiddenError,
    InternalError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    PasswordHashError,
    StorageError,
    UnauthenticatedError,
    ValidationError,
)
from fanrise.core.utils import generate_id, utc_now

__all__ = [
    # Models
    "Account",
    "AccountResponse",
    "Playlist",
    "Song",
    "SongFields",
    "SongPatch",
    # Errors
    "AccountNotFoundError",
    "ConcurrencyError",
    "ConflictError",
    "DuplicateMemberError",
    "ErrorCode",
    "FanriseError",
    "ForbiddenError",
    "InternalError",
    "InvalidCredentialsError",
    "InvalidRefreshTokenError",
    "NotFoundError",
    "PasswordHashError",
    "StorageError",
    "UnauthenticatedError",
    "ValidationError",
    # Utils
    "generate_id",
    "utc_now",
]
