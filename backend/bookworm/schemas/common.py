"""
BookWorm Backend — Shared Response Schemas
============================================

What:  The response envelope every endpoint returns, plus error and health bodies.

Envelope convention:
    success → {"success": true,  "message": "...", "data": <payload|null>}
    failure → {"success": false, "error": "<code>", "message": "...",
               "data": null, "request_id": "..."}
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Successful response wrapper."""

    success: bool = Field(default=True, description="Always true for 2xx responses")
    message: str = Field(description="Human-readable outcome")
    data: Any = Field(default=None, description="Endpoint payload, or null")


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "success": false,
            "error": "duplicate_email",
            "message": "Email already in use.",
            "data": null,
            "request_id": "a1b2c3d4"
        }
    """

    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    data: None = Field(default=None)
    details: Optional[List[dict]] = Field(default=None, description="Field errors for 422 responses")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected or disconnected")
    connections_in_use: int = Field(description="Pooled connections currently checked out")
    uptime_seconds: float = Field(description="Seconds since service started")
