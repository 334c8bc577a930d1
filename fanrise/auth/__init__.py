"""
Authentication - accounts, tokens and the authorization gate.

Routes depend on `require_auth` / `optional_auth` from
`fanrise.auth.policies`; both resolve an `AuthContext`.
"""

from fanrise.auth.context import AuthContext
from fanrise.auth.jwt import (
    TokenClaims,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    TokenPair,
    TokenIssuer,
)
from fanrise.auth.passwords import hash_password, verify_password
from fanrise.auth.service import AuthResult, AuthService, RefreshResult

__all__ = [
    "AuthContext",
    "AuthResult",
    "AuthService",
    "RefreshResult",
    "TokenClaims",
    "TokenError",
    "TokenExpiredError",
    "TokenInvalidError",
    "TokenPair",
    "TokenIssuer",
    "hash_password",
    "verify_password",
]
