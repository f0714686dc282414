"""
NewsNext Backend — Health & Root Routes
========================================

GET /        service banner (used by uptime monitors and as a smoke test)
GET /health  database probe for load balancers and Docker

Status levels:
    healthy    database answers SELECT 1            (HTTP 200)
    unhealthy  database unreachable                 (HTTP 503)

Stripe, email and GA4 are deliberately not probed: the API keeps serving
news and ads without them.
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from newsnext import __version__
from newsnext.database import engine
from newsnext.schemas.common import HealthResponse, RootResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=RootResponse, summary="Service banner")
async def root() -> RootResponse:
    return RootResponse(message="NEWS NEXT Backend API", version=__version__, status="running")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", e)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
