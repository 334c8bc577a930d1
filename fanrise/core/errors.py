"""
Error taxonomy for the fanrise API.

Every failure a caller can observe is one of these exceptions. Each carries
a stable machine-readable `code` and the HTTP status it maps to, so the
API layer can render them without knowing about individual services.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    DUPLICATE_MEMBER = "DUPLICATE_MEMBER"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    NOT_FOUND = "NOT_FOUND"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


class FanriseError(Exception):
    """Base exception for all errors surfaced to API callers."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "Something went wrong on the server"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code.value}


# =============================================================================
# 400 - caller input
# =============================================================================


class ValidationError(FanriseError):
    """
    Malformed or missing input.

    `errors` holds one entry per offending field:
        [{"field": "password", "message": "..."}]
    """

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
    ):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, errors=[{"field": field, "message": message}])

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "errors": self.errors}


# =============================================================================
# 401 / 403 - identity
# =============================================================================


class InvalidCredentialsError(FanriseError):
    """Login failed. Never says which of identifier/password was wrong."""

    code = ErrorCode.INVALID_CREDENTIALS
    status_code = 401
    default_message = "Invalid credentials"


class UnauthenticatedError(FanriseError):
    """No usable access token on a protected call."""

    code = ErrorCode.UNAUTHENTICATED
    status_code = 401
    default_message = "Not authorized"


class InvalidRefreshTokenError(FanriseError):
    code = ErrorCode.INVALID_REFRESH_TOKEN
    status_code = 401
    default_message = "Invalid or expired refresh token"


class ForbiddenError(FanriseError):
    """Authenticated, but not the owner of the resource."""

    code = ErrorCode.FORBIDDEN
    status_code = 403
    default_message = "User not authorized"


# =============================================================================
# 404 / 409 - resource state
# =============================================================================


class NotFoundError(FanriseError):
    code = ErrorCode.NOT_FOUND
    status_code = 404
    default_message = "Not found"


class AccountNotFoundError(NotFoundError):
    code = ErrorCode.ACCOUNT_NOT_FOUND
    default_message = "User not found"


class ConflictError(FanriseError):
    """A unique field already exists."""

    code = ErrorCode.CONFLICT
    status_code = 409
    default_message = "Resource already exists"


class DuplicateMemberError(ConflictError):
    code = ErrorCode.DUPLICATE_MEMBER
    default_message = "Song already in playlist"


class ConcurrencyError(ConflictError):
    """A conditional update lost a race with another writer."""

    code = ErrorCode.CONCURRENCY_CONFLICT
    default_message = "Resource was modified concurrently, please retry"


# =============================================================================
# 500 - infrastructure
# =============================================================================


class InternalError(FanriseError):
    """Store, hashing, or signing failure unrelated to caller input."""


class StorageError(InternalError):
    pass


class PasswordHashError(InternalError):
    pass
