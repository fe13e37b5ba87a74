"""
BookWorm Backend — Auth Gate Tests
====================================

What we test:
    ✅ Header parsing: missing, wrong scheme, case-sensitive "Bearer", empty token
    ✅ Protected routes answer 401 with the error envelope and WWW-Authenticate
    ✅ A rejected request never reaches the handler
    ✅ Public routes need no token
    ✅ Error responses carry the request ID
"""

from unittest.mock import AsyncMock

import jwt
import pytest

from bookworm.dependencies import parse_bearer_token
from bookworm.exceptions import MissingCredentials
from bookworm.security import TokenClaims, TokenCodec
from conftest import TEST_JWT_SECRET

PROTECTED = [
    ("GET", "/fav-books"),
    ("GET", "/wishlist"),
    ("GET", "/finished-books"),
    ("POST", "/add-to-list"),
    ("DELETE", "/delete?identifier=x&table=wishlist"),
    ("GET", "/user-data"),
    ("PUT", "/update-user"),
    ("PUT", "/update-password"),
]


class TestParseBearerToken:

    def test_valid(self):
        assert parse_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_missing(self):
        with pytest.raises(MissingCredentials) as exc_info:
            parse_bearer_token(None)
        assert "no authorization headers" in exc_info.value.message

    def test_other_scheme(self):
        with pytest.raises(MissingCredentials) as exc_info:
            parse_bearer_token("Basic dXNlcjpwYXNz")
        assert "invalid authorization scheme" in exc_info.value.message

    def test_scheme_is_case_sensitive(self):
        with pytest.raises(MissingCredentials):
            parse_bearer_token("bearer abc")

    def test_empty_token(self):
        with pytest.raises(MissingCredentials):
            parse_bearer_token("Bearer ")


class TestProtectedRoutes:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,path", PROTECTED)
    async def test_no_header_is_401(self, client, method, path):
        response = await client.request(method, path)
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "missing_credentials"
        assert body["data"] is None
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_wrong_scheme(self, client):
        response = await client.get("/fav-books", headers={"Authorization": "Token abc"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid authorization, invalid authorization scheme"

    @pytest.mark.asyncio
    async def test_malformed_token(self, client):
        response = await client.get("/fav-books", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "invalid_token"

    @pytest.mark.asyncio
    async def test_foreign_secret(self, client):
        token = jwt.encode(
            {"userId": 1, "email": "reader1@example.com", "admin": False},
            "someone-elses-secret-" * 4,
            algorithm="HS256",
        )
        response = await client.get("/fav-books", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "invalid_token"

    @pytest.mark.asyncio
    async def test_expired_token(self, client):
        from datetime import datetime, timedelta, timezone

        codec = TokenCodec(TEST_JWT_SECRET, expire_minutes=1)
        token = codec.issue(TokenClaims(
            user_id=1,
            email="reader1@example.com",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=2),
        ))
        response = await client.get("/fav-books", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "expired_token"

    @pytest.mark.asyncio
    async def test_handler_not_run_on_rejection(self, client, monkeypatch):
        list_books = AsyncMock(return_value=[])
        monkeypatch.setattr("bookworm.routes.lists.list_service.list_books", list_books)

        response = await client.get("/fav-books", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        list_books.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_token_reaches_handler(self, client, auth_headers):
        response = await client.get("/fav-books", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_error_carries_request_id(self, client):
        response = await client.get("/user-data", headers={"X-Request-ID": "trace-123"})
        assert response.status_code == 401
        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"


class TestPublicRoutes:

    @pytest.mark.asyncio
    async def test_log_out_needs_no_token(self, client):
        response = await client.get("/log-out")
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Successfully signed out.",
            "data": None,
        }

    @pytest.mark.asyncio
    async def test_search_needs_no_token(self, client):
        response = await client.get("/search-books", params={"search-terms": "dune", "criteria": "title"})
        assert response.status_code == 200
