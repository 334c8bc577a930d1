"""
Policies - the authorization gate for protected routes.

Just use: `ctx: AuthContext = Depends(require_auth)`

Design:
- The bearer token is read from `Authorization: Bearer <token>`
- It is verified against the ACCESS secret only
- The account is always re-loaded, so a deleted account stops working
  immediately instead of when its token expires
- On any failure the route is never invoked; the caller gets a 401
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fanrise.api.dependencies import get_auth_service
from fanrise.auth.context import AuthContext
from fanrise.auth.jwt import TokenError
from fanrise.auth.service import AuthService
from fanrise.core.errors import UnauthenticatedError
from fanrise.integrations.sentry import set_user

logger = logging.getLogger(__name__)


# Doesn't fail by itself if no token; the gate decides
bearer = HTTPBearer(auto_error=False)


async def resolve_auth_context(token: str | None, auth: AuthService) -> AuthContext:
    """
    Turn a raw bearer token into an AuthContext.

    Raises:
        UnauthenticatedError: missing token, bad/expired token, or the
            account no longer exists
    """
    token = (token or "").strip()
    if not token:
        raise UnauthenticatedError("Not authorized, no token")

    try:
        claims = auth.issuer.verify_access(token)
    except TokenError as e:
        logger.info(f"Rejected access token: {e}")
        raise UnauthenticatedError("Not authorized, token failed")

    account = await auth.get_account(claims.account_id)
    if not account:
        logger.info(f"Token for missing account {claims.account_id}")
        raise UnauthenticatedError("User not found")

    set_user(account.id)
    return AuthContext(
        account_id=account.id,
        username=account.username,
        email=account.email,
    )


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    auth: AuthService = Depends(get_auth_service),
) -> AuthContext:
    """Dependency for routes that need a signed-in account."""
    token = credentials.credentials if credentials else None
    ctx = await resolve_auth_context(token, auth)
    request.state.auth = ctx
    return ctx


async def optional_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    auth: AuthService = Depends(get_auth_service),
) -> AuthContext:
    """
    Dependency for public routes.

    No header → anonymous context. A header that is present but invalid
    is still rejected.
    """
    if not credentials:
        ctx = AuthContext.anonymous()
    else:
        ctx = await resolve_auth_context(credentials.credentials, auth)
    request.state.auth = ctx
    return ctx
