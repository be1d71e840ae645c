"""
Newsdesk Backend — Health Check Routes
========================================

What:  Liveness and readiness probes.
Who:   Docker health checks, load balancers, uptime monitors.

    GET /health    → database connectivity, content store backend, uptime
    GET /api/test  → constant JSON, no dependencies touched

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 200 with status flag; the blog
                 list keeps serving placeholder data in that state)
"""

import logging
import time

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from newsdesk import __version__
from newsdesk.database import engine
from newsdesk.schemas.common import HealthResponse, MessageResponse
from newsdesk.services.content_store import LocalContentStore, MemoryContentStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


def store_backend_name(store: object) -> str:
    if isinstance(store, LocalContentStore):
        return "local"
    if isinstance(store, MemoryContentStore):
        return "memory"
    return type(store).__name__


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Probe the database with SELECT 1 and report the content store in use."""
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        content_store=store_backend_name(request.app.state.content_store),
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get("/api/test", response_model=MessageResponse, summary="Smoke test endpoint")
async def api_test() -> MessageResponse:
    return MessageResponse(message="API is working")
