"""End-to-end tests through the HTTP API."""

import pytest

from fanrise.storage.base import Collections

SONG = {
    "title": "Bohemian Rhapsody",
    "artist": "Queen",
    "album": "A Night at the Opera",
    "genre": "Rock",
    "duration": 355,
    "releaseYear": 1975,
}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# =============================================================================
# Auth
# =============================================================================


class TestAuthEndpoints:
    def test_register_then_login_by_username(self, client, register_user):
        registered, _ = register_user("alice")

        assert set(registered) >= {"accessToken", "refreshToken", "tokenType", "expiresIn", "user"}
        assert "passwordHash" not in registered["user"]

        response = client.post("/api/auth/login", json={"email": "alice", "password": "Secret123!"})
        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered["user"]["id"]

    def test_login_with_username_field(self, client, register_user):
        register_user("alice")

        response = client.post("/api/auth/login", json={"username": "alice", "password": "Secret123!"})

        assert response.status_code == 200

    def test_register_validation_errors(self, client):
        response = client.post("/api/auth/register", json={
            "username": "al",
            "email": "nope",
            "password": "weak",
        })

        body = response.json()
        assert response.status_code == 400
        assert body["code"] == "VALIDATION_ERROR"
        assert {e["field"] for e in body["errors"]} == {"username", "email", "password"}
        assert "timestamp" in body

    def test_register_missing_field(self, client):
        response = client.post("/api/auth/register", json={"username": "alice"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_duplicate_register(self, client, register_user):
        register_user("alice")

        response = client.post("/api/auth/register", json={
            "username": "alice",
            "email": "alice@example.com",
            "password": "Secret123!",
        })

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_bad_credentials(self, client, register_user):
        register_user("alice")

        response = client.post("/api/auth/login", json={"email": "alice", "password": "Wrong123!"})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    def test_current_user(self, client, register_user):
        registered, headers = register_user("alice")

        response = client.get("/api/auth/user", headers=headers)

        assert response.status_code == 200
        assert response.json()["username"] == "alice"
        assert response.json()["id"] == registered["user"]["id"]

    def test_current_user_without_token(self, client):
        response = client.get("/api/auth/user")

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, no token"

    @pytest.mark.parametrize("header", ["Basic xyz", "Bearer", "Bearer   ", "bearer"])
    def test_current_user_with_malformed_header(self, client, header):
        response = client.get("/api/auth/user", headers={"Authorization": header})

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, no token"

    def test_current_user_with_garbage_token(self, client):
        response = client.get("/api/auth/user", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, token failed"

    def test_refresh(self, client, register_user):
        registered, _ = register_user("alice")

        response = client.post("/api/auth/refresh-token", json={"refreshToken": registered["refreshToken"]})

        body = response.json()
        assert response.status_code == 200
        assert body["accessToken"]
        assert "refreshToken" not in body

        me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {body['accessToken']}"})
        assert me.status_code == 200

    def test_refresh_with_access_token(self, client, register_user):
        registered, _ = register_user("alice")

        response = client.post("/api/auth/refresh-token", json={"refreshToken": registered["accessToken"]})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_REFRESH_TOKEN"

    def test_logout(self, client, register_user):
        registered, _ = register_user("alice")

        response = client.post("/api/auth/logout", json={"refreshToken": registered["refreshToken"]})

        assert response.status_code == 200
        assert response.json()["revoked"] is False


# =============================================================================
# Songs
# =============================================================================


class TestSongEndpoints:
    def test_create_requires_auth(self, client):
        response = client.post("/api/songs", json=SONG)

        assert response.status_code == 401

    def test_create_and_get_public(self, client, register_user):
        _, headers = register_user("alice")

        created = client.post("/api/songs", json=SONG, headers=headers)
        assert created.status_code == 201
        song = created.json()
        assert song["releaseYear"] == 1975
        assert song["createdBy"]

        fetched = client.get(f"/api/songs/{song['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["title"] == "Bohemian Rhapsody"

    def test_missing_song(self, client):
        response = client.get("/api/songs/song_missing")

        assert response.status_code == 404
        assert response.json()["message"] == "Song not found"

    def test_invalid_song(self, client, register_user):
        _, headers = register_user("alice")

        response = client.post("/api/songs", json={**SONG, "title": " ", "releaseYear": 1800}, headers=headers)

        body = response.json()
        assert response.status_code == 400
        assert {e["field"] for e in body["errors"]} == {"title", "releaseYear"}
        assert "Song title is required" in {e["message"] for e in body["errors"]}

    def test_listing_paginates_and_searches(self, client, register_user):
        _, headers = register_user("alice")
        for title in ("Bohemian Rhapsody", "Imagine", "Billie Jean"):
            client.post("/api/songs", json={**SONG, "title": title}, headers=headers)

        response = client.get("/api/songs", params={"page": "1", "limit": "2", "sortBy": "title"})
        body = response.json()
        assert response.status_code == 200
        assert [s["title"] for s in body["items"]] == ["Billie Jean", "Bohemian Rhapsody"]
        assert body["totalPages"] == 2
        assert body["totalItems"] == 3

        searched = client.get("/api/songs", params={"search": "IMAG"})
        assert [s["title"] for s in searched.json()["items"]] == ["Imagine"]

    def test_listing_tolerates_bad_numbers(self, client):
        response = client.get("/api/songs", params={"page": "abc", "limit": "-5"})

        assert response.status_code == 200
        assert response.json()["page"] == 1
        assert response.json()["pageSize"] == 10

    def test_quick_search_requires_auth_and_query(self, client, register_user):
        assert client.get("/api/songs/search", params={"query": "queen"}).status_code == 401

        _, headers = register_user("alice")
        client.post("/api/songs", json=SONG, headers=headers)

        found = client.get("/api/songs/search", params={"query": "queen"}, headers=headers)
        assert [s["title"] for s in found.json()] == ["Bohemian Rhapsody"]

        blank = client.get("/api/songs/search", headers=headers)
        assert blank.status_code == 400

    def test_patch_and_put(self, client, register_user):
        _, headers = register_user("alice")
        song = client.post("/api/songs", json=SONG, headers=headers).json()

        patched = client.patch(f"/api/songs/{song['id']}", json={"genre": "Opera"}, headers=headers)
        assert patched.status_code == 200
        assert patched.json()["genre"] == "Opera"
        assert patched.json()["album"] == "A Night at the Opera"

        put = client.put(f"/api/songs/{song['id']}", json={"title": "Imagine", "artist": "John Lennon"}, headers=headers)
        assert put.status_code == 200
        assert put.json()["album"] is None

    def test_patch_with_null_title_rejected(self, client, register_user):
        _, headers = register_user("alice")
        song = client.post("/api/songs", json=SONG, headers=headers).json()

        response = client.patch(f"/api/songs/{song['id']}", json={"title": None}, headers=headers)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert client.get(f"/api/songs/{song['id']}").json()["title"] == SONG["title"]
        assert client.get("/api/songs").status_code == 200

    def test_only_creator_can_delete(self, client, register_user):
        _, alice = register_user("alice")
        _, bob = register_user("bob")
        song = client.post("/api/songs", json=SONG, headers=alice).json()

        denied = client.delete(f"/api/songs/{song['id']}", headers=bob)
        assert denied.status_code == 403
        assert denied.json()["code"] == "FORBIDDEN"

        deleted = client.delete(f"/api/songs/{song['id']}", headers=alice)
        assert deleted.status_code == 200
        assert client.get(f"/api/songs/{song['id']}").status_code == 404


# =============================================================================
# Playlists
# =============================================================================


class TestPlaylistEndpoints:
    def test_road_trip(self, client, register_user, storage):
        alice_body, alice = register_user("alice")
        _, bob = register_user("bob")
        song = client.post("/api/songs", json=SONG, headers=alice).json()

        created = client.post(
            "/api/playlists",
            json={"name": "Road Trip", "description": "Songs for the car"},
            headers=alice,
        )
        assert created.status_code == 200
        playlist = created.json()
        assert playlist["user"] == alice_body["user"]["id"]

        denied = client.delete(f"/api/playlists/{playlist['id']}", headers=bob)
        assert denied.status_code == 403
        assert client.get(f"/api/playlists/{playlist['id']}", headers=alice).status_code == 200

        added = client.post(f"/api/playlists/{playlist['id']}/songs", json={"songId": song["id"]}, headers=alice)
        assert added.status_code == 200
        assert added.json()["songs"] == [song["id"]]

        duplicate = client.post(f"/api/playlists/{playlist['id']}/songs", json={"songId": song["id"]}, headers=alice)
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "DUPLICATE_MEMBER"

        removed = client.delete(f"/api/playlists/{playlist['id']}/songs/{song['id']}", headers=alice)
        assert removed.json()["songs"] == []

        deleted = client.delete(f"/api/playlists/{playlist['id']}", headers=alice)
        assert deleted.status_code == 200
        assert client.get(f"/api/playlists/{playlist['id']}", headers=alice).status_code == 404

    def test_list_and_update(self, client, register_user):
        _, alice = register_user("alice")
        _, bob = register_user("bob")
        client.post("/api/playlists", json={"name": "Mine"}, headers=alice)
        client.post("/api/playlists", json={"name": "Bob's"}, headers=bob)

        listed = client.get("/api/playlists", headers=alice).json()
        assert [p["name"] for p in listed] == ["Mine"]

        updated = client.put(f"/api/playlists/{listed[0]['id']}", json={"name": "Renamed"}, headers=alice)
        assert updated.json()["name"] == "Renamed"

    def test_reorder(self, client, register_user):
        _, alice = register_user("alice")
        a = client.post("/api/songs", json={**SONG, "title": "A"}, headers=alice).json()["id"]
        b = client.post("/api/songs", json={**SONG, "title": "B"}, headers=alice).json()["id"]
        playlist = client.post("/api/playlists", json={"name": "Mix"}, headers=alice).json()
        for song_id in (a, b):
            client.post(f"/api/playlists/{playlist['id']}/songs", json={"songId": song_id}, headers=alice)

        reordered = client.put(
            f"/api/playlists/{playlist['id']}/songs/order",
            json={"songIds": [b, a]},
            headers=alice,
        )
        assert reordered.json()["songs"] == [b, a]

        bad = client.put(
            f"/api/playlists/{playlist['id']}/songs/order",
            json={"songIds": [b]},
            headers=alice,
        )
        assert bad.status_code == 400
        assert bad.json()["errors"][0]["field"] == "songIds"

    def test_playlists_require_auth(self, client):
        assert client.get("/api/playlists").status_code == 401
        assert client.post("/api/playlists", json={"name": "x"}).status_code == 401


class TestDeletedAccount:
    def test_token_stops_working(self, client, register_user, storage):
        registered, headers = register_user("alice")

        # Account removed directly in the store
        storage.metadata._data[Collections.ACCOUNTS].pop(registered["user"]["id"])

        response = client.get("/api/auth/user", headers=headers)
        assert response.status_code == 401
        assert response.json()["message"] == "User not found"
