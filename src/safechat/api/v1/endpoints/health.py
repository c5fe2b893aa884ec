"""
Health Check Endpoints

Provides system health and readiness endpoints for:
- Load balancer health checks
- Kubernetes probes
- Monitoring systems
"""

from fastapi import APIRouter
from pydantic import BaseModel

from safechat import __version__
from safechat.config import get_settings
from safechat.config.logging_config import get_logger
from safechat.infrastructure.database import get_db_manager

logger = get_logger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response with component health."""

    ready: bool
    components: dict


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic health check endpoint for load balancers",
)
async def health_check() -> HealthResponse:
    """Returns 200 if the application is running."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=get_settings().env,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Detailed readiness check including all components",
)
async def readiness_check() -> ReadinessResponse:
    """
    Detailed readiness check.

    Checks:
    - Database connectivity
    - Verifier provider configuration

    An unconfigured verifier does not block message flow (verification
    fails open), but the service is not ready for production traffic.
    """
    components = {}

    try:
        components["database"] = await get_db_manager().health_check()
    except Exception:
        components["database"] = False

    try:
        from safechat.infrastructure.llm.provider_factory import get_llm_provider
        components["verifier_configured"] = get_llm_provider().is_configured()
    except Exception as e:
        logger.warning("Verifier provider unavailable", error=str(e))
        components["verifier_configured"] = False

    ready = components["database"] and components["verifier_configured"]

    return ReadinessResponse(ready=ready, components=components)


@router.get(
    "/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Kubernetes liveness probe endpoint",
)
async def liveness_check() -> HealthResponse:
    """Returns 200 if the application process is alive."""
    return HealthResponse(
        status="alive",
        version=__version__,
        environment=get_settings().env,
    )
