"""Shared fixtures: in-memory storage, services, and an app per test."""

import pytest
from fastapi.testclient import TestClient

from fanrise.api.app import create_app
from fanrise.auth.context import AuthContext
from fanrise.auth.jwt import TokenIssuer
from fanrise.auth.service import AuthService
from fanrise.catalog.service import SongService
from fanrise.config import Settings
from fanrise.playlists.service import PlaylistService
from fanrise.storage import create_local_storage

ACCESS_SECRET = "test-access-secret-0123456789abcdef0123456789"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef012345678"
PASSWORD = "Secret123!"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        mongodb_uri="",
        jwt_access_secret_key=ACCESS_SECRET,
        jwt_refresh_secret_key=REFRESH_SECRET,
        sentry_dsn="",
    )


@pytest.fixture
def storage():
    return create_local_storage()


@pytest.fixture
def metadata(storage):
    return storage.metadata


@pytest.fixture
def issuer(settings):
    return TokenIssuer.from_settings(settings)


@pytest.fixture
def auth_service(metadata, issuer):
    return AuthService(metadata, issuer)


@pytest.fixture
def song_service(metadata):
    return SongService(metadata)


@pytest.fixture
def playlist_service(metadata, song_service):
    return PlaylistService(metadata, song_service)


@pytest.fixture
def alice():
    return AuthContext(account_id="acct_alice", username="alice", email="alice@example.com")


@pytest.fixture
def bob():
    return AuthContext(account_id="acct_bob", username="bob", email="bob@example.com")


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def app(settings, storage):
    return create_app(settings=settings, storage=storage)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_user(client):
    """Register through the API; returns (auth body, headers)."""

    def _register(username: str, email: str | None = None, password: str = PASSWORD):
        response = client.post("/api/auth/register", json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return body, {"Authorization": f"Bearer {body['accessToken']}"}

    return _register
