"""
Auth context - who is making the request.

This is the lightweight object passed to route handlers and services.
It carries the resolved account identity and the owner-check helpers.
"""

from __future__ import annotations

from dataclasses import dataclass

from fanrise.core.errors import ForbiddenError, UnauthenticatedError


@dataclass(frozen=True)
class AuthContext:
    """
    Authorization context for a request.

    Usage in routes:
        async def my_route(ctx: AuthContext = Depends(require_auth)):
            ctx.require_owner(playlist.owner_id)
    """

    account_id: str | None = None
    username: str | None = None
    email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        """Is there a logged-in account?"""
        return self.account_id is not None

    @property
    def is_anonymous(self) -> bool:
        return self.account_id is None

    def owns(self, owner_id: str | None) -> bool:
        """Is the acting account the recorded owner?"""
        return self.is_authenticated and owner_id == self.account_id

    def require_authenticated(self) -> str:
        """Return the account id, raising if anonymous."""
        if self.account_id is None:
            raise UnauthenticatedError("Authentication required")
        return self.account_id

    def require_owner(self, owner_id: str | None) -> None:
        """
        Raise if the acting account is not the owner.

        Usage:
            ctx.require_owner(playlist.owner_id)  # raises ForbiddenError
        """
        self.require_authenticated()
        if not self.owns(owner_id):
            raise ForbiddenError("User not authorized")

    @classmethod
    def anonymous(cls) -> AuthContext:
        """Create an anonymous context (no account)."""
        return cls()
