# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /api/auth/register       - Create account, returns tokens (201)
#   POST /api/auth/login          - Username or email + password, returns tokens
#   POST /api/auth/refresh-token  - New access token from a refresh token
#   POST /api/auth/logout         - Revoke a refresh token (rotation only)
#   GET  /api/auth/user           - Get current account
#
# =============================================================================

from fastapi import APIRouter, Depends, status
from pydantic import model_validator

from fanrise.api.dependencies import get_auth_service
from fanrise.auth.context import AuthContext
from fanrise.auth.policies import require_auth
from fanrise.auth.service import AuthResult, AuthService, RefreshResult
from fanrise.core.models import AccountResponse, CamelModel

router = APIRouter(prefix="/api/auth", tags=["auth"])


# =============================================================================
# Request Models
# =============================================================================

class RegisterRequest(CamelModel):
    username: str
    email: str
    password: str


class LoginRequest(CamelModel):
    """`email` may hold either an email address or a username."""

    email: str = ""
    username: str = ""
    password: str = ""

    @model_validator(mode="after")
    def _identifier_from_username(self):
        if not self.email.strip() and self.username.strip():
            self.email = self.username
        return self

    @property
    def identifier(self) -> str:
        return self.email


class RefreshRequest(CamelModel):
    refresh_token: str


# =============================================================================
# Public Endpoints
# =============================================================================

@router.post("/register", response_model=AuthResult, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Create a new account.

    Returns access and refresh tokens on success.
    """
    return await auth.register(data.username, data.email, data.password)


@router.post("/login", response_model=AuthResult)
async def login(
    data: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
):
    return await auth.login(data.identifier, data.password)


@router.post("/refresh-token", response_model=RefreshResult, response_model_exclude_none=True)
async def refresh_token(
    data: RefreshRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Use refresh token to get new access token.

    A new refresh token is only included when rotation is enabled.
    """
    return await auth.refresh_access_token(data.refresh_token)


@router.post("/logout")
async def logout(
    data: RefreshRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Logout. With rotation on, the refresh token is revoked server-side;
    otherwise the client just discards its tokens.
    """
    revoked = await auth.logout(data.refresh_token)
    return {"message": "Logged out successfully", "revoked": revoked}


# =============================================================================
# Protected Endpoints
# =============================================================================

@router.get("/user", response_model=AccountResponse)
async def get_current_user(
    ctx: AuthContext = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    """
    Get the current authenticated account.
    """
    account = await auth.get_current_account(ctx.require_authenticated())
    return account.to_response()
