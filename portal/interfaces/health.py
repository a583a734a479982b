"""
Health check router.

Provides a simple health endpoint for liveness/readiness probes.
No business logic. Returns application status, version and whether
the database answers.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine

from portal.core.config import settings
from portal.infrastructure.database.engine import check_connection, get_engine
from portal.interfaces.brokerage.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status, version and database reachability.",
)
def health_check(engine: Engine = Depends(get_engine)) -> HealthResponse:
    """Return current application health status."""
    database = "ok" if check_connection(engine) else "unavailable"
    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        version=settings.version,
        database=database,
    )
