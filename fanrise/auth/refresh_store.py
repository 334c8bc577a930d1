"""
Refresh token registry.

Only used when refresh-token rotation is switched on
(`jwt_rotate_refresh_tokens`). Each issued refresh token's `jti` is
recorded; using a token revokes it, so every refresh token works once.
Without rotation the server keeps no token state at all.
"""

from __future__ import annotations

import logging

from fanrise.auth.jwt import TokenClaims
from fanrise.core.utils import utc_now
from fanrise.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)


class RefreshTokenRegistry:
    """Tracks issued refresh tokens by jti."""

    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata

    async def record(self, claims: TokenClaims) -> None:
        await self.metadata.save(Collections.REFRESH_TOKENS, claims.jti, {
            "id": claims.jti,
            "account_id": claims.account_id,
            "expires_at": claims.exp,
            "revoked": False,
            "created_at": utc_now(),
        })

    async def is_active(self, claims: TokenClaims) -> bool:
        record = await self.metadata.get(Collections.REFRESH_TOKENS, claims.jti)
        if not record or record.get("revoked"):
            return False
        return record.get("account_id") == claims.account_id

    async def revoke(self, claims: TokenClaims) -> bool:
        """
        Mark a token as used.

        Conditional on the record still being live, so two concurrent
        refreshes with the same token cannot both succeed.
        """
        revoked = await self.metadata.update(
            Collections.REFRESH_TOKENS,
            claims.jti,
            {"revoked": True, "revoked_at": utc_now()},
            match={"revoked": False},
        )
        if not revoked:
            logger.warning(f"Refresh token {claims.jti} already revoked or unknown")
        return revoked
