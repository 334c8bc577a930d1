"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # ==========================================================================
    # API Server
    # ==========================================================================

    api_host: str = "0.0.0.0"
    api_port: int = 5000
    cors_origins: str = "http://localhost:3000"

    # ==========================================================================
    # Database
    # ==========================================================================

    # Empty means the in-memory document store (development/tests)
    mongodb_uri: str = ""
    mongodb_database: str = "fanrise"

    # ==========================================================================
    # Authentication
    # ==========================================================================

    # Access and refresh tokens are signed with different secrets
    jwt_access_secret_key: str = "dev-access-secret-change-in-production-0123456789"
    jwt_refresh_secret_key: str = "dev-refresh-secret-change-in-production-0123456789"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 15
    jwt_refresh_token_expire_days: int = 7
    jwt_rotate_refresh_tokens: bool = False

    # ==========================================================================
    # Catalog
    # ==========================================================================

    catalog_cache_ttl_seconds: int = 300
    catalog_default_page_size: int = 10
    catalog_max_page_size: int = 100
    search_result_limit: int = 10

    # Only the creator may edit/delete a song
    enforce_song_ownership: bool = True

    seed_catalog: bool = False

    # ==========================================================================
    # Optional Services
    # ==========================================================================

    sentry_dsn: str = ""

    # ==========================================================================
    # Client
    # ==========================================================================

    client_login_timeout_seconds: float = 15.0

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def use_mongo(self) -> bool:
        """Whether the MongoDB backend should be used."""
        return bool(self.mongodb_uri)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
