"""
Auth service - registration, login, token refresh, current account.

The server keeps no session table: a "session" is the pair of signed
tokens held by the client. The only optional server-side state is the
refresh token registry used when rotation is enabled.
"""

from __future__ import annotations

import logging

from email_validator import EmailNotValidError, validate_email

from fanrise.auth.jwt import TokenError, TokenIssuer
from fanrise.auth.passwords import (
    hash_password,
    password_policy_violations,
    verify_password,
)
from fanrise.auth.refresh_store import RefreshTokenRegistry
from fanrise.core.errors import (
    AccountNotFoundError,
    ConflictError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    ValidationError,
)
from fanrise.core.models import Account, AccountResponse, CamelModel
from fanrise.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30


# =============================================================================
# Results
# =============================================================================


class AuthResult(CamelModel):
    """Returned by register and login."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AccountResponse


class RefreshResult(CamelModel):
    """Returned by refresh. `refresh_token` is only set when rotating."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    refresh_token: str | None = None


# =============================================================================
# Validation
# =============================================================================


def validate_registration(username: str, email: str, password: str) -> str:
    """
    Check registration input, collecting every field problem.

    Returns the normalized (lower-cased) email.

    Raises:
        ValidationError: with one entry per failing field
    """
    errors: list[dict[str, str]] = []

    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        errors.append({
            "field": "username",
            "message": (
                f"Username must be between {USERNAME_MIN_LENGTH} "
                f"and {USERNAME_MAX_LENGTH} characters"
            ),
        })
    elif "@" in username:
        # Login takes username OR email, so a username must never look like one
        errors.append({"field": "username", "message": "Username cannot contain '@'"})

    normalized_email = email.strip().lower()
    try:
        normalized_email = validate_email(email.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        errors.append({"field": "email", "message": "Please include a valid email"})

    problems = password_policy_violations(password)
    if problems:
        errors.append({
            "field": "password",
            "message": "Password must contain " + ", ".join(problems),
        })

    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return normalized_email


# =============================================================================
# Service
# =============================================================================


class AuthService:
    """Orchestrates account creation and the token lifecycle."""

    def __init__(
        self,
        metadata: MetadataStorage,
        issuer: TokenIssuer,
        rotate_refresh_tokens: bool = False,
    ):
        self.metadata = metadata
        self.issuer = issuer
        self.rotate_refresh_tokens = rotate_refresh_tokens
        self.refresh_registry = RefreshTokenRegistry(metadata)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def get_account(self, account_id: str) -> Account | None:
        doc = await self.metadata.get(Collections.ACCOUNTS, account_id)
        return Account.model_validate(doc) if doc else None

    async def find_by_identifier(self, identifier: str) -> Account | None:
        """
        Match the identifier against email first, then username.

        An identifier matching both an email and some other account's
        username always resolves to the email owner.
        """
        doc = await self.metadata.find_one(Collections.ACCOUNTS, {"email": identifier.lower()})
        if doc is None:
            doc = await self.metadata.find_one(Collections.ACCOUNTS, {"username": identifier})
        return Account.model_validate(doc) if doc else None

    # -------------------------------------------------------------------------
    # Token issuing
    # -------------------------------------------------------------------------

    async def _track_refresh_token(self, token: str) -> None:
        if self.rotate_refresh_tokens:
            await self.refresh_registry.record(self.issuer.verify_refresh(token))

    async def _issue_refresh_token(self, account_id: str) -> str:
        token = self.issuer.issue_refresh_token(account_id)
        await self._track_refresh_token(token)
        return token

    async def _auth_result(self, account: Account) -> AuthResult:
        pair = self.issuer.issue_pair(account.id)
        await self._track_refresh_token(pair.refresh_token)
        return AuthResult(
            **pair.model_dump(),
            user=account.to_response(),
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def register(self, username: str, email: str, password: str) -> AuthResult:
        """
        Create an account and sign it in.

        Raises:
            ValidationError: bad username/email/password
            ConflictError: username or email already taken
        """
        username = username.strip()
        email = validate_registration(username, email, password)

        existing = await self.metadata.find_one(Collections.ACCOUNTS, {
            "$or": [{"username": username}, {"email": email}],
        })
        if existing:
            raise ConflictError("User with this email or username already exists")

        account = Account(
            username=username,
            email=email,
            password_hash=hash_password(password),
        )
        await self.metadata.save(Collections.ACCOUNTS, account.id, account.to_document())
        logger.info(f"Registered account {account.id}")

        return await self._auth_result(account)

    async def login(self, identifier: str, password: str) -> AuthResult:
        """
        Authenticate by username or email.

        Unknown account and wrong password fail identically.
        """
        identifier = (identifier or "").strip()
        errors = []
        if not identifier:
            errors.append({"field": "email", "message": "Please include a valid email or username"})
        if not password:
            errors.append({"field": "password", "message": "Password is required"})
        if errors:
            raise ValidationError("Validation failed", errors=errors)

        account = await self.find_by_identifier(identifier)
        if not account or not verify_password(password, account.password_hash):
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentialsError()

        logger.info(f"Account {account.id} logged in")
        return await self._auth_result(account)

    async def refresh_access_token(self, refresh_token: str) -> RefreshResult:
        """
        Mint a new access token from a refresh token.

        Without rotation the refresh token itself is left untouched. With
        rotation it is revoked and a new one is returned alongside.
        """
        try:
            claims = self.issuer.verify_refresh(refresh_token)
        except TokenError as e:
            logger.info(f"Refresh rejected: {e}")
            raise InvalidRefreshTokenError()

        account = await self.get_account(claims.account_id)
        if not account:
            raise AccountNotFoundError()

        new_refresh = None
        if self.rotate_refresh_tokens:
            if not await self.refresh_registry.is_active(claims):
                raise InvalidRefreshTokenError("Refresh token has been revoked")
            if not await self.refresh_registry.revoke(claims):
                raise InvalidRefreshTokenError("Refresh token has been revoked")
            new_refresh = await self._issue_refresh_token(account.id)

        return RefreshResult(
            access_token=self.issuer.issue_access_token(account.id),
            expires_in=self.issuer.access_expires_in,
            refresh_token=new_refresh,
        )

    async def logout(self, refresh_token: str) -> bool:
        """
        Revoke a refresh token.

        Returns False when rotation is off: tokens are stateless then and
        the client simply discards them.
        """
        if not self.rotate_refresh_tokens:
            return False
        try:
            claims = self.issuer.verify_refresh(refresh_token)
        except TokenError:
            raise InvalidRefreshTokenError()
        return await self.refresh_registry.revoke(claims)

    async def get_current_account(self, account_id: str) -> Account:
        account = await self.get_account(account_id)
        if not account:
            raise AccountNotFoundError()
        return account
