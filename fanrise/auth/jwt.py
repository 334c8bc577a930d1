# =============================================================================
# JWT Token Issuer
# =============================================================================
#
# Access and refresh tokens are both HS256 JWTs carrying the account id in
# `sub`. They are signed with DIFFERENT secrets: a leaked access secret
# cannot mint refresh tokens and vice versa. Nothing is persisted; a token
# is valid iff its signature matches and `exp` has not passed.
#
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging

import jwt

from fanrise.config import Settings
from fanrise.core.models import CamelModel
from fanrise.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


# =============================================================================
# Models
# =============================================================================

class TokenClaims(CamelModel):
    """Decoded JWT payload."""
    sub: str  # account id
    exp: datetime
    iat: datetime
    type: str  # "access" or "refresh"
    jti: str  # unique token ID (for rotation/revocation)

    @property
    def account_id(self) -> str:
        return self.sub


class TokenPair(CamelModel):
    """Access and refresh token pair."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires


# =============================================================================
# Errors
# =============================================================================

class TokenError(Exception):
    """Base exception for token errors."""
    pass


class TokenExpiredError(TokenError):
    """Token signature is valid but it has expired."""
    pass


class TokenInvalidError(TokenError):
    """Token is invalid, malformed, or signed with another secret."""
    pass


# =============================================================================
# Issuer
# =============================================================================

class TokenIssuer:
    """Creates and verifies access/refresh tokens."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("JWT secrets cannot be empty")
        if access_secret == refresh_secret:
            logger.warning("Access and refresh tokens share a signing secret")

        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(
            access_secret=settings.jwt_access_secret_key,
            refresh_secret=settings.jwt_refresh_secret_key,
            access_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
            algorithm=settings.jwt_algorithm,
        )

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def _encode(self, account_id: str, token_type: str, secret: str, ttl: timedelta) -> str:
        now = utc_now()
        payload = {
            "sub": account_id,
            "exp": now + ttl,
            "iat": now,
            "type": token_type,
            "jti": generate_id("tok"),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def issue_access_token(self, account_id: str) -> str:
        """Create a short-lived access token."""
        return self._encode(account_id, ACCESS, self.access_secret, self.access_ttl)

    def issue_refresh_token(self, account_id: str) -> str:
        """Create a long-lived refresh token."""
        return self._encode(account_id, REFRESH, self.refresh_secret, self.refresh_ttl)

    def issue_pair(self, account_id: str) -> TokenPair:
        """Create both access and refresh tokens."""
        return TokenPair(
            access_token=self.issue_access_token(account_id),
            refresh_token=self.issue_refresh_token(account_id),
            expires_in=self.access_expires_in,
        )

    @property
    def access_expires_in(self) -> int:
        return int(self.access_ttl.total_seconds())

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------

    def verify(self, token: str, secret: str, expected_type: str | None = None) -> TokenClaims:
        """
        Decode and validate a JWT token.

        Args:
            token: The JWT string
            secret: Secret the token must be signed with
            expected_type: "access" or "refresh"; None skips the check

        Returns:
            TokenClaims with validated claims

        Raises:
            TokenExpiredError: Signature valid, token expired
            TokenInvalidError: Anything else
        """
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}")

        if expected_type and payload.get("type") != expected_type:
            raise TokenInvalidError(f"Expected {expected_type} token, got {payload.get('type')}")

        return TokenClaims(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            type=payload.get("type", ""),
            jti=payload.get("jti", ""),
        )

    def verify_access(self, token: str) -> TokenClaims:
        return self.verify(token, self.access_secret, expected_type=ACCESS)

    def verify_refresh(self, token: str) -> TokenClaims:
        return self.verify(token, self.refresh_secret, expected_type=REFRESH)
