"""Health-check router.

Liveness and readiness endpoints for container orchestrators.  Readiness
issues ``SELECT 1`` against the feature database.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def liveness() -> dict[str, str]:
    """Liveness check: always returns healthy if the process is up."""
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness(request: Request) -> JSONResponse:
    """Readiness check: verifies database connectivity."""
    try:
        engine = request.app.state.engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        logger.warning("Readiness check failed — database unreachable", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "database": "disconnected"},
        )
    return JSONResponse(
        status_code=200,
        content={"status": "ready", "database": "connected"},
    )
