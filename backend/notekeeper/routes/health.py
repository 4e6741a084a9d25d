"""
Notekeeper Backend — Health Check Route
=========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the Note Store (SELECT 1) and the counter store (PING).

Status levels:
    - healthy:   both stores reachable (HTTP 200)
    - degraded:  counter store down; writes to notes would still work but
                 every gated request fails (HTTP 200, flag for monitoring)
    - unhealthy: Note Store down (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from notekeeper import __version__
from notekeeper.database import engine
from notekeeper.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Note Store unreachable", "model": HealthResponse}},
)
async def health_check(request: Request):
    db_status = "connected"
    counter_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    gate = getattr(request.app.state, "admission_gate", None)
    if gate is None:
        counter_status = "disabled"
    elif not await gate.ping():
        counter_status = "disconnected"
        if overall != "unhealthy":
            overall = "degraded"
        logger.warning("Health check: counter store unreachable")

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        counter_store=counter_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )
