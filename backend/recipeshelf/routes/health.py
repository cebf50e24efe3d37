"""
RecipeShelf Backend — Health Check Route
=========================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   `SELECT 1` against the pool. The database is the only critical
       dependency, so its state decides the overall status.

    healthy    database reachable        → 200
    unhealthy  database unreachable      → 503
"""

import logging
import time

from fastapi import APIRouter, Response, status
from sqlalchemy.exc import SQLAlchemyError

from recipeshelf import __version__
from recipeshelf.database import ping_database
from recipeshelf.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await ping_database()
    except (OSError, SQLAlchemyError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
