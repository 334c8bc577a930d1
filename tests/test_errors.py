"""Tests for error rendering."""

from fastapi.testclient import TestClient

from fanrise.core.errors import ConcurrencyError, StorageError, ValidationError


class TestErrorTaxonomy:
    def test_validation_carries_field_errors(self):
        error = ValidationError.for_field("name", "Name is required")

        assert error.status_code == 400
        assert error.to_dict() == {
            "message": "Name is required",
            "code": "VALIDATION_ERROR",
            "errors": [{"field": "name", "message": "Name is required"}],
        }

    def test_concurrency_is_a_conflict(self):
        assert ConcurrencyError().status_code == 409


class TestHandlers:
    def test_internal_error_message_is_generic(self, app):
        @app.get("/boom-storage")
        async def boom_storage():
            raise StorageError("connection refused to db-1:27017")

        response = TestClient(app).get("/boom-storage")

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
        assert "db-1" not in response.json()["message"]

    def test_unhandled_error_details_hidden_in_production(self, app, settings):
        settings.environment = "production"

        @app.get("/boom")
        async def boom():
            raise RuntimeError("secret detail")

        response = TestClient(app, raise_server_exceptions=False).get("/boom")

        body = response.json()
        assert response.status_code == 500
        assert body["message"] == "Something went wrong on the server"
        assert "details" not in body
        assert "stack" not in body

    def test_unhandled_error_details_shown_in_development(self, app):
        @app.get("/boom")
        async def boom():
            raise RuntimeError("secret detail")

        response = TestClient(app, raise_server_exceptions=False).get("/boom")

        assert response.json()["details"] == "secret detail"

    def test_unknown_route(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
