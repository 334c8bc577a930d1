"""
FastAPI application for the fanrise platform.

This is the HTTP API the web frontend talks to: accounts, the song
catalog and playlists.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fanrise import __version__
from fanrise.api.dependencies import build_state
from fanrise.api.errors import setup_exception_handlers
from fanrise.auth.routes import router as auth_router
from fanrise.catalog.routes import router as songs_router
from fanrise.config import Settings, get_settings
from fanrise.integrations.sentry import init_sentry
from fanrise.playlists.routes import router as playlists_router
from fanrise.seed import seed_catalog
from fanrise.storage import StorageProvider, create_storage, ensure_all_indexes

logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup app resources."""
    state = app.state.fanrise
    settings = state.settings

    if init_sentry(settings):
        logger.info("Sentry error tracking enabled")

    await ensure_all_indexes(state.storage)
    if settings.seed_catalog:
        await seed_catalog(state.storage.metadata)

    logger.info(f"fanrise API starting in {settings.environment} mode")

    yield

    await state.storage.metadata.close()
    logger.info("fanrise API shutting down")


# =============================================================================
# App Setup
# =============================================================================


def create_app(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
) -> FastAPI:
    """
    Build the application.

    Tests pass their own settings and storage; otherwise both come from
    the environment.
    """
    settings = settings or get_settings()
    storage = storage or create_storage(settings)

    app = FastAPI(
        title="fanrise API",
        description="Song catalog, playlists and accounts",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.fanrise = build_state(settings, storage)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app, settings)

    app.include_router(auth_router)
    app.include_router(songs_router)
    app.include_router(playlists_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "environment": settings.environment}

    return app


app = create_app()
