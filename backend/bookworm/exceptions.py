"""
BookWorm Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for every failure a request can hit.
How:   Each exception carries a client-safe message, a machine-readable
       `code`, an HTTP `status_code` and an optional context dict. Global
       handlers (registered in main.py) turn them into the JSON envelope.
Who:   Raised by services, the auth gate and the database session manager.

Exception Hierarchy:
    BookWormError (base)
    ├── ValidationError            → 400 Bad Request
    │   ├── DuplicateEmail
    │   └── DuplicateUsername
    ├── AuthError                  → 401 Unauthorized
    │   ├── MissingCredentials
    │   ├── InvalidToken
    │   ├── ExpiredToken
    │   └── WrongPassword
    ├── NotFoundError              → 404 Not Found
    │   └── UnknownEmail
    ├── UpstreamError              → 502 Bad Gateway
    └── DatabaseError              → 500 Internal Server Error

`context` is logged server-side and never returned for 5xx errors.
"""

from typing import Any, Dict, Optional


class BookWormError(Exception):
    """
    Base exception for all BookWorm application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, not returned to the client)
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


# ── 400 ───────────────────────────────────────────────────────────────────


class ValidationError(BookWormError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (missing fields, wrong types) are rejected by
    FastAPI before reaching a service and answered with 422.
    """

    status_code = 400
    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DuplicateEmail(ValidationError):
    code = "duplicate_email"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Email already in use.", field="email", context=context)


class DuplicateUsername(ValidationError):
    code = "duplicate_username"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Username already in use.", field="username", context=context)


# ── 401 ───────────────────────────────────────────────────────────────────


class AuthError(BookWormError):
    """
    Raised when the caller cannot be authenticated.

    HTTP:    401 Unauthorized, with `WWW-Authenticate: Bearer`.
    """

    status_code = 401
    code = "auth_error"

    def __init__(
        self,
        message: str = "Authentication failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MissingCredentials(AuthError):
    """No Authorization header, a scheme other than Bearer, or an empty token."""

    code = "missing_credentials"

    def __init__(self, message: str = "Invalid authorization, no bearer token provided"):
        super().__init__(message=message)


class InvalidToken(AuthError):
    code = "invalid_token"

    def __init__(self, message: str = "Invalid token", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class ExpiredToken(AuthError):
    code = "expired_token"

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message=message)


class WrongPassword(AuthError):
    code = "wrong_password"

    def __init__(self):
        super().__init__(message="Password is wrong")


# ── 404 ───────────────────────────────────────────────────────────────────


class NotFoundError(BookWormError):
    """Raised when a requested resource does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(message=message or f"The requested {resource} was not found", context=ctx)


class UnknownEmail(NotFoundError):
    code = "unknown_email"

    def __init__(self):
        super().__init__(resource="user", message="Email not found")


# ── 5xx ───────────────────────────────────────────────────────────────────


class UpstreamError(BookWormError):
    """
    Raised when the Google Books API call fails.

    When:    Timeout, connection error, non-2xx status or a non-JSON body.
    HTTP:    502 Bad Gateway. Nothing is retried.
    """

    status_code = 502
    code = "upstream_error"

    def __init__(
        self,
        message: str = "The book catalog is unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BookWormError):
    """
    Raised when database operations fail unexpectedly.

    When:    Pool checkout timeout, session configuration failure, lost
             connection mid-query.
    HTTP:    500. The message returned to the client is always generic;
             driver errors stay in the server log.
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
