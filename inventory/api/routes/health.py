"""Health check endpoints."""

from fastapi import APIRouter

from inventory import __version__
from inventory.config import settings
from inventory.core.header_aliases import load_header_aliases
from inventory.infra.database import verify_db_connection
from inventory.infra.logging import get_logger
from inventory.schemas.common import HealthResponse

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Basic health check. Returns 200 if the service is running."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={},
    )


@router.get("/health/ready", response_model=HealthResponse)
async def health_ready() -> HealthResponse:
    """Readiness check.

    Verifies:
    - the database answers
    - the header alias table loads
    """
    checks: dict[str, bool] = {}

    checks["database"] = await verify_db_connection()

    try:
        checks["header_aliases"] = len(load_header_aliases()) > 0
    except Exception as e:
        logger.warning("Header alias check failed", error=str(e))
        checks["header_aliases"] = False

    all_healthy = all(checks.values()) if checks else True

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        version=__version__,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={"alive": True},
    )
