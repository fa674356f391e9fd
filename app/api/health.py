"""Health check endpoint."""

from datetime import UTC, datetime

from app.core.logger import LogIcon, logger
from app.core.router import Router
from app.models.upload import HealthResponse

router = Router(__file__, prefix="/api")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def health_status() -> HealthResponse:
    return HealthResponse(status="ok", message="Backend API is running", timestamp=utc_timestamp())


@router.get("/health")
async def health_check() -> HealthResponse:
    logger.debug("Health check requested", icon=LogIcon.HEALTHCHECK)
    return health_status()
