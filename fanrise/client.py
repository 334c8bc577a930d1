"""
HTTP client for the fanrise API.

Holds the token pair after login/register and sends the access token on
protected calls. An access token rejected with 401 is refreshed once with
the refresh token, then the call is retried.

Login is bounded by a timeout: if the server hasn't answered in time the
caller gets LoginTimeoutError, which is distinct from bad credentials.
The request is abandoned on the client only.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from fanrise.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_TIMEOUT = 15.0


class ApiError(Exception):
    """Non-2xx response. Branch on `status_code` / `code`, not `message`."""

    def __init__(self, status_code: int, message: str, code: str | None = None, errors=None):
        self.status_code = status_code
        self.message = message
        self.code = code
        self.errors = errors or []
        super().__init__(f"{status_code} {code or ''}: {message}".strip())

    @classmethod
    def from_response(cls, response: httpx.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            response.status_code,
            body.get("message") or response.reason_phrase,
            body.get("code"),
            body.get("errors"),
        )


class LoginTimeoutError(Exception):
    """Login did not complete within the client's timeout."""


class FanriseClient:
    """Async client wrapper for the fanrise API."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        login_timeout: float = DEFAULT_LOGIN_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.login_timeout = login_timeout
        self.access_token: str | None = None
        self.refresh_token: str | None = None
        self.user: dict[str, Any] | None = None
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings, base_url: str | None = None, **kwargs) -> FanriseClient:
        return cls(
            base_url=base_url or f"http://localhost:{settings.api_port}",
            login_timeout=settings.client_login_timeout_seconds,
            **kwargs,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> FanriseClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _auth_headers(self) -> dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _request(self, method: str, path: str, *, auth: bool = False, **kwargs) -> Any:
        response = await self._client.request(
            method, path, headers=self._auth_headers() if auth else None, **kwargs
        )
        if response.status_code == 401 and auth and self.refresh_token:
            logger.debug(f"{method} {path} rejected, refreshing access token")
            await self.refresh()
            response = await self._client.request(
                method, path, headers=self._auth_headers(), **kwargs
            )
        if response.is_error:
            raise ApiError.from_response(response)
        return response.json()

    def _store_session(self, body: dict[str, Any]) -> dict[str, Any]:
        self.access_token = body["accessToken"]
        self.refresh_token = body.get("refreshToken", self.refresh_token)
        if "user" in body:
            self.user = body["user"]
        return body

    def clear_session(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    async def register(self, username: str, email: str, password: str) -> dict[str, Any]:
        body = await self._request(
            "POST",
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        return self._store_session(body)

    async def login(self, identifier: str, password: str) -> dict[str, Any]:
        """
        Sign in by username or email.

        Raises:
            LoginTimeoutError: no answer within `login_timeout` seconds
            ApiError: the server rejected the login (e.g. 401 bad credentials)
        """
        try:
            body = await asyncio.wait_for(
                self._request(
                    "POST",
                    "/api/auth/login",
                    json={"email": identifier, "password": password},
                ),
                timeout=self.login_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Login timed out after {self.login_timeout}s")
            raise LoginTimeoutError("Login request timed out. Please try again.")
        return self._store_session(body)

    async def refresh(self) -> dict[str, Any]:
        if not self.refresh_token:
            raise ApiError(401, "No refresh token", "INVALID_REFRESH_TOKEN")
        try:
            body = await self._request(
                "POST",
                "/api/auth/refresh-token",
                json={"refreshToken": self.refresh_token},
            )
        except ApiError:
            self.clear_session()
            raise
        return self._store_session(body)

    async def logout(self) -> None:
        """Revoke the refresh token server-side (if supported) and forget tokens."""
        if self.refresh_token:
            try:
                await self._request(
                    "POST",
                    "/api/auth/logout",
                    json={"refreshToken": self.refresh_token},
                )
            except ApiError as e:
                logger.info(f"Logout request failed: {e}")
        self.clear_session()

    async def current_user(self) -> dict[str, Any]:
        return await self._request("GET", "/api/auth/user", auth=True)

    # -------------------------------------------------------------------------
    # Songs
    # -------------------------------------------------------------------------

    async def list_songs(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        if sort_by:
            params["sortBy"] = sort_by
        if sort_order:
            params["sortOrder"] = sort_order
        return await self._request("GET", "/api/songs", params=params, auth=self.is_authenticated)

    async def search_songs(self, query: str) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/songs/search", params={"query": query}, auth=True)

    async def get_song(self, song_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/songs/{song_id}", auth=self.is_authenticated)

    async def create_song(self, song: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/songs", json=song, auth=True)

    async def update_song(self, song_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PATCH", f"/api/songs/{song_id}", json=changes, auth=True)

    async def delete_song(self, song_id: str) -> None:
        await self._request("DELETE", f"/api/songs/{song_id}", auth=True)

    # -------------------------------------------------------------------------
    # Playlists
    # -------------------------------------------------------------------------

    async def list_playlists(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/playlists", auth=True)

    async def create_playlist(self, name: str, description: str | None = None) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/api/playlists",
            json={"name": name, "description": description},
            auth=True,
        )

    async def get_playlist(self, playlist_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/playlists/{playlist_id}", auth=True)

    async def delete_playlist(self, playlist_id: str) -> None:
        await self._request("DELETE", f"/api/playlists/{playlist_id}", auth=True)

    async def add_song_to_playlist(self, playlist_id: str, song_id: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/api/playlists/{playlist_id}/songs",
            json={"songId": song_id},
            auth=True,
        )

    async def remove_song_from_playlist(self, playlist_id: str, song_id: str) -> dict[str, Any]:
        return await self._request(
            "DELETE", f"/api/playlists/{playlist_id}/songs/{song_id}", auth=True
        )

    async def reorder_playlist(self, playlist_id: str, song_ids: list[str]) -> dict[str, Any]:
        return await self._request(
            "PUT",
            f"/api/playlists/{playlist_id}/songs/order",
            json={"songIds": song_ids},
            auth=True,
        )
