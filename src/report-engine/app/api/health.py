"""Health check endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request
from sqlalchemy import select

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "report-engine"}


@router.get("/ready")
async def readiness_check(request: Request) -> dict:
    """Readiness check - verifies the database is reachable.

    An unconfigured reasoning service does not make the service unready:
    reports are then produced by the fallback path.
    """
    session_factory = getattr(request.app.state, "session_factory", None)
    reasoning = getattr(request.app.state, "reasoning_client", None)
    reasoning_state = "configured" if reasoning and reasoning.is_configured else "fallback"

    if session_factory is None:
        return {"status": "not_ready", "database": "not_configured", "reasoning": reasoning_state}

    try:
        start = time.time()
        async with session_factory() as session:
            await session.execute(select(1))
        latency_ms = int((time.time() - start) * 1000)
    except Exception as e:
        return {
            "status": "not_ready",
            "database": "disconnected",
            "error": str(e),
            "reasoning": reasoning_state,
        }

    return {
        "status": "ready",
        "database": "connected",
        "database_latency_ms": latency_ms,
        "reasoning": reasoning_state,
    }
