"""
BookWorm Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds the process-wide collaborators from one
       Settings object (database session manager, token codec, user service,
       Google Books client), stores them on app.state, then registers
       middleware, exception handlers and routes.
Who:   uvicorn (`uvicorn bookworm.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │  Middleware:  Request ID → Access Log → CORS             │
    │                                                          │
    │  Public routes:     /register /log-in /log-out           │
    │                     /search-books /health                │
    │  Protected routes:  DB session → Auth Gate → handler     │
    │                     /add-to-list /fav-books /wishlist    │
    │                     /finished-books /delete /user-data   │
    │                     /update-user /update-password        │
    │                                                          │
    │  Exception handlers:                                     │
    │  Validation→400  Auth→401  NotFound→404  Schema→422      │
    │  Upstream→502    Database/SQLAlchemy/unexpected→500      │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, warn about insecure settings, optionally
              create tables.
    Shutdown: close the Google Books client, dispose the connection pool.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from bookworm import __version__
from bookworm.config import Settings, get_settings
from bookworm.database import DatabaseSessionManager
from bookworm.exceptions import AuthError, BookWormError
from bookworm.middleware.logging import RequestLoggingMiddleware
from bookworm.middleware.request_id import RequestIDMiddleware, request_id_var
from bookworm.routes import auth, health, lists, profile, search
from bookworm.security import TokenCodec
from bookworm.services.book_search_service import BookSearchService
from bookworm.services.user_service import UserService

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An unexpected error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    When:    Called once from the lifespan, before anything else logs.
    Format:  %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    # httpx logs full request URLs at INFO, and those carry the API key.
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    setup_logging(settings.log_level)
    logger.info("BookWorm Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.warning("%s", e)

    if settings.create_tables_on_startup:
        await app.state.db.create_all()
        logger.info("Database tables ensured")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("BookWorm Backend shutting down...")
    await app.state.book_search.aclose()
    await app.state.db.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    headers: Optional[Dict[str, str]] = None,
    details: Optional[list] = None,
) -> JSONResponse:
    content = {
        "success": False,
        "error": code,
        "message": message,
        "data": None,
        "request_id": _request_id(request),
    }
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the error envelope.

    Handler hierarchy (most specific wins):
        AuthError               → 401 + WWW-Authenticate: Bearer
        BookWormError           → exc.status_code (4xx: exc.message; 5xx: generic)
        RequestValidationError  → 422 with field locations and messages
        SQLAlchemyError         → 500 generic
        Exception (fallback)    → 500 generic

    Security: responses never carry driver errors, stack traces or context
    dicts; those are logged server-side with the request ID.
    """

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        logger.info("[%s] Authentication rejected: %s", _request_id(request), exc.code)
        return _error_response(
            request,
            exc.status_code,
            exc.code,
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(BookWormError)
    async def handle_app_error(request: Request, exc: BookWormError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            message = exc.message if exc.status_code != 500 else GENERIC_SERVER_ERROR
            return _error_response(request, exc.status_code, exc.code, message)
        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return _error_response(request, exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return _error_response(
            request,
            422,
            "validation_error",
            "Request is missing required fields or has invalid values.",
            details=details,
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Database error: %s", _request_id(request), type(exc).__name__, exc_info=True)
        return _error_response(request, 500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), type(exc).__name__, exc_info=True)
        return _error_response(request, 500, "internal_server_error", GENERIC_SERVER_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    book_search: Optional[BookSearchService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:    Configuration; read from the environment when omitted.
        book_search: Pre-built search service (tests inject a mocked transport).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="BookWorm API",
        description=(
            "Search the Google Books catalog and keep personal lists of favorite, "
            "wished-for and finished books."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Process-wide collaborators ────────────────────────────────────────
    codec = TokenCodec.from_settings(settings)
    app.state.settings = settings
    app.state.db = DatabaseSessionManager(settings)
    app.state.token_codec = codec
    app.state.user_service = UserService(
        codec,
        bcrypt_rounds=settings.bcrypt_rounds,
        allow_admin_signup=settings.allow_admin_signup,
    )
    app.state.book_search = book_search or BookSearchService(settings)

    # ── Middleware (last added runs first) ────────────────────────────────
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(search.router)
    app.include_router(lists.router)
    app.include_router(profile.router)
    app.include_router(health.router)

    return app


app = create_app()
