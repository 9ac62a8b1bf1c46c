"""
PostDesk Backend — Health Check Route
=====================================

What:  Health check endpoint for monitoring and container probes.
How:   Pings the database through the application's connector.

    Status levels:
    - healthy:   Database answers SELECT 1
    - unhealthy: Database unreachable (still HTTP 200 so the UI can show it)
"""

import logging
import time

from fastapi import APIRouter, Depends

from postdesk import __version__
from postdesk.database import DatabaseConnector, get_connector
from postdesk.schemas.post import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    connector: DatabaseConnector = Depends(get_connector),
) -> HealthResponse:
    db_ok = await connector.ping()
    if not db_ok:
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        version=__version__,
        database="connected" if db_ok else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
