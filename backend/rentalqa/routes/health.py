"""
RentalQ&A Backend — Health Check Route
========================================

What:  GET /health for Docker health checks and load balancers.
How:   Runs SELECT 1 against the database and reports the state of the
       cached question aggregation without triggering a fetch.

Status levels:
    healthy:   database reachable (HTTP 200)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from rentalqa import __version__
from rentalqa.database import check_database
from rentalqa.routes.questions import get_questions_query
from rentalqa.schemas.question import HealthResponse
from rentalqa.services.aggregation import QuestionsQuery

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    query: QuestionsQuery = Depends(get_questions_query),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await check_database()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", e)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        questions_cache=query.state().status.value,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
