"""
Application state and the FastAPI dependencies that hand it to routes.

Everything is built once per app by `build_state` and hung off
`app.state.fanrise`.
"""

from __future__ import annotations

from fastapi import Request

from fanrise.auth.jwt import TokenIssuer
from fanrise.auth.service import AuthService
from fanrise.catalog.query import CatalogQueryEngine
from fanrise.catalog.service import SongService
from fanrise.config import Settings
from fanrise.playlists.service import PlaylistService
from fanrise.storage import StorageProvider


class AppState:
    """Application state - initialized when the app is created."""

    settings: Settings
    storage: StorageProvider
    auth: AuthService
    catalog: CatalogQueryEngine
    songs: SongService
    playlists: PlaylistService


def build_state(settings: Settings, storage: StorageProvider) -> AppState:
    """Wire services to storage according to settings."""
    state = AppState()
    state.settings = settings
    state.storage = storage
    state.auth = AuthService(
        storage.metadata,
        TokenIssuer.from_settings(settings),
        rotate_refresh_tokens=settings.jwt_rotate_refresh_tokens,
    )
    state.catalog = CatalogQueryEngine(
        storage.metadata,
        storage.cache,
        ttl_seconds=settings.catalog_cache_ttl_seconds,
        default_page_size=settings.catalog_default_page_size,
        max_page_size=settings.catalog_max_page_size,
    )
    state.songs = SongService(
        storage.metadata,
        enforce_ownership=settings.enforce_song_ownership,
        search_limit=settings.search_result_limit,
    )
    state.playlists = PlaylistService(storage.metadata, state.songs)
    return state


# =============================================================================
# Dependencies
# =============================================================================


def get_state(request: Request) -> AppState:
    return request.app.state.fanrise


def get_auth_service(request: Request) -> AuthService:
    return get_state(request).auth


def get_catalog(request: Request) -> CatalogQueryEngine:
    return get_state(request).catalog


def get_song_service(request: Request) -> SongService:
    return get_state(request).songs


def get_playlist_service(request: Request) -> PlaylistService:
    return get_state(request).playlists
