"""
BookWorm Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that needs the app gets its own SQLite database file
       (aiosqlite) under tmp_path and a Google Books client wired to an
       httpx.MockTransport, so nothing leaves the process.

Fixture Hierarchy:
    settings ─┬─ db_manager           DatabaseSessionManager with tables created
              └─ app ── client        FastAPI app + HTTPX AsyncClient (ASGITransport)
    google_books                      scripted fake of the volumes endpoint
    register_user / auth_headers      create accounts through POST /register
"""

import os
import tempfile
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set BEFORE any bookworm import: bookworm.main builds a module-level app
# from the environment.
TEST_JWT_SECRET = "bookworm-test-secret-" * 4
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="bookworm_test_"), "import.db"
)
os.environ["JWT_SECRET"] = TEST_JWT_SECRET
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BOOKS_API_KEY"] = ""

from bookworm.config import Settings  # noqa: E402


SAMPLE_VOLUMES = {
    "items": [
        {
            "id": "zyTCAlFPjgYC",
            "volumeInfo": {
                "title": "The Google Story",
                "authors": ["David A. Vise", "Mark Malseed"],
                "publisher": "Random House Digital, Inc.",
                "publishedDate": "2005-11-15",
            },
        }
    ]
}


class FakeGoogleBooks:
    """
    Callable handler for httpx.MockTransport that records every request.

    Set `status_code`, `raw` (non-JSON body) or `error` (exception to raise)
    to script a failure.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body: Any = SAMPLE_VOLUMES
        self.raw: Optional[bytes] = None
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.body)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a fresh SQLite file with cheap bcrypt rounds."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bookworm.db'}",
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,
        db_pool_size=5,
        db_max_overflow=0,
        db_pool_timeout=5.0,
        log_level="WARNING",
        books_api_key="",
    )


@pytest_asyncio.fixture
async def db_manager(settings):
    """A DatabaseSessionManager with every table created."""
    from bookworm.database import DatabaseSessionManager

    manager = DatabaseSessionManager(settings)
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def google_books() -> FakeGoogleBooks:
    return FakeGoogleBooks()


@pytest_asyncio.fixture
async def app(settings, google_books):
    """
    A fully wired application on its own database.

    The lifespan does not run under ASGITransport, so tables are created here.
    """
    from bookworm.main import create_app
    from bookworm.services.book_search_service import BookSearchService

    book_search = BookSearchService(
        settings,
        client=httpx.AsyncClient(transport=httpx.MockTransport(google_books)),
    )
    application = create_app(settings, book_search=book_search)
    await application.state.db.create_all()
    yield application
    await book_search.aclose()
    await application.state.db.dispose()


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    raise_app_exceptions=False lets tests assert on the 500 envelope instead
    of seeing the re-raised exception.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def user_payload(n: int = 1, **overrides: Any) -> Dict[str, Any]:
    payload = {
        "email": f"reader{n}@example.com",
        "username": f"reader{n}",
        "password": f"correct horse {n}",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "dateOfBirth": "1990-05-01",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register_user(client) -> Callable:
    """
    Returns an async helper: `token = await register_user(n, **overrides)`.
    """

    async def _register(n: int = 1, **overrides: Any) -> str:
        response = await client.post("/register", json=user_payload(n, **overrides))
        assert response.status_code == 200, response.text
        return response.json()["jwt"]

    return _register


@pytest_asyncio.fixture
async def auth_headers(register_user) -> Dict[str, str]:
    """Authorization header for a freshly registered reader1@example.com."""
    token = await register_user(1)
    return {"Authorization": f"Bearer {token}"}
