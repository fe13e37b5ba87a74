"""
BookWorm Backend — Configuration and Error Envelope Tests
===========================================================

What we test:
    ✅ JWT algorithm whitelist, log level and URL validation
    ✅ Insecure development defaults are reported
    ✅ Secrets stay masked
    ✅ 5xx responses are generic and never leak internal details
"""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import OperationalError

from bookworm.config import Settings
from bookworm.exceptions import DatabaseError
from conftest import TEST_JWT_SECRET


class TestSettings:

    def test_algorithm_normalized(self):
        assert Settings(jwt_secret=TEST_JWT_SECRET, jwt_algorithm="hs512").jwt_algorithm == "HS512"

    @pytest.mark.parametrize("algorithm", ["none", "RS256", "ES256", ""])
    def test_algorithm_outside_whitelist(self, algorithm):
        with pytest.raises(PydanticValidationError):
            Settings(jwt_secret=TEST_JWT_SECRET, jwt_algorithm=algorithm)

    def test_empty_secret_rejected(self):
        with pytest.raises(PydanticValidationError):
            Settings(jwt_secret="   ")

    def test_log_level(self):
        assert Settings(jwt_secret=TEST_JWT_SECRET, log_level="debug").log_level == "DEBUG"
        with pytest.raises(PydanticValidationError):
            Settings(jwt_secret=TEST_JWT_SECRET, log_level="LOUD")

    def test_books_api_url_must_be_http(self):
        with pytest.raises(PydanticValidationError):
            Settings(jwt_secret=TEST_JWT_SECRET, books_api_url="ftp://example.com")

    def test_cors_origins_list(self):
        settings = Settings(jwt_secret=TEST_JWT_SECRET, cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_secrets_masked(self):
        settings = Settings(jwt_secret=TEST_JWT_SECRET, books_api_key="abc")
        assert TEST_JWT_SECRET not in repr(settings)
        assert "abc" not in str(settings.books_api_key)

    def test_development_defaults_reported(self):
        settings = Settings(jwt_secret="change-me-in-production", books_api_key="")
        with pytest.raises(ValueError) as exc_info:
            settings.validate_required_for_production()
        assert "JWT_SECRET" in str(exc_info.value)
        assert "BOOKS_API_KEY" in str(exc_info.value)

    def test_production_settings_pass(self):
        Settings(jwt_secret=TEST_JWT_SECRET, books_api_key="key").validate_required_for_production()


class TestServerErrors:

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(
            "bookworm.routes.lists.list_service.list_books",
            AsyncMock(side_effect=RuntimeError("password=hunter2 at 10.0.0.5")),
        )
        response = await client.get("/fav-books", headers=auth_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert "hunter2" not in response.text
        assert "10.0.0.5" not in response.text

    @pytest.mark.asyncio
    async def test_database_error_hides_context(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(
            "bookworm.routes.lists.list_service.list_books",
            AsyncMock(side_effect=DatabaseError(context={"dsn": "postgresql://u:p@db/bookworm"})),
        )
        response = await client.get("/wishlist", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"] == "server_error"
        assert "postgresql://" not in response.text

    @pytest.mark.asyncio
    async def test_driver_error_is_generic(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(
            "bookworm.routes.lists.list_service.list_books",
            AsyncMock(side_effect=OperationalError("SELECT secret_column", {}, Exception("boom"))),
        )
        response = await client.get("/finished-books", headers=auth_headers)

        assert response.status_code == 500
        assert "secret_column" not in response.text
