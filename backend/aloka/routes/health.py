"""
ALOKA Backend — Health Check Route
===================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   Load balancers route away from instances that cannot reach the database.
How:   Runs SELECT 1 through the shared engine and reports uptime.
When:  Periodically (e.g., every 30 seconds by Docker, every 10 seconds by LB).

Status levels:
    - healthy:   database reachable
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from aloka import __version__
from aloka import database
from aloka.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    """
    Probe database connectivity and return aggregate status.

    SELECT 1 is essentially free, so it is safe at probe frequency.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
