"""
BookWorm Backend — Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the database on a short-lived connection and reports how many
       pooled connections requests currently hold.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response

from bookworm import __version__
from bookworm.database import DatabaseSessionManager
from bookworm.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request, response: Response) -> HealthResponse:
    db: DatabaseSessionManager = request.app.state.db

    connected = await db.ping()
    if not connected:
        response.status_code = 503

    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        connections_in_use=db.checked_out(),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
