"""
Tattooed World Backend — Health Check Route
=============================================

What:  Liveness and dependency status for load balancers and monitoring.
How:   Lightweight probes only: `SELECT 1` for the database, in-memory state
       for the geocoder (no provider call, it would spend quota).

Status levels:
    healthy    database reachable, geocoder configured and circuit closed
    degraded   database reachable, geocoding unavailable (map features off)
    unhealthy  database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from tattooed_world import __version__
from tattooed_world.database import engine
from tattooed_world.schemas.common import HealthResponse
from tattooed_world.services.geocoder import geocoder
from tattooed_world.services.geocoding_batch import batch_controller

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    # ── Database ──────────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", exc)

    # ── Geocoder ──────────────────────────────────────────────────────────
    geocoder_state = geocoder.state()
    if geocoder_state != "configured" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        geocoder=geocoder_state,
        batch_running=batch_controller.running,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
