"""
ScopeNotes Backend — Health Check Route
=========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database and the job queue and returns an aggregate status.

Status levels:
    - healthy:   Database reachable and job queue running (HTTP 200)
    - degraded:  Job queue stopped; synchronous endpoints still work (HTTP 200)
    - unhealthy: Database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from sqlalchemy import text

from scopenotes import __version__
from scopenotes.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Probe the database with SELECT 1 and report the job queue state.
    """
    db_status = "connected"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        from scopenotes.database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Job Queue ───────────────────────────────────────────────────
    job_queue = getattr(request.app.state, "job_queue", None)
    queue_status = "running" if job_queue is not None and job_queue.running else "stopped"
    if queue_status != "running" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        job_queue=queue_status,
        pending_jobs=job_queue.pending if job_queue is not None else 0,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
