"""Health check API router."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from command_center.api.models import ReadinessResponse
from command_center.api.utils import get_service_factory
from command_center.infra.error_handler import MissingCredential
from command_center.infra.metrics import get_metrics_response
from command_center.services.service_factory import ServiceFactory

router = APIRouter()


@router.get("/health", tags=["Health"])
async def health_check():
    """Combined health check endpoint."""
    return {
        "status": "ok",
        "service": "command-center",
        "version": "1.0.0",
    }


@router.get("/health/live", tags=["Health"])
async def liveness_probe():
    """Liveness probe - indicates if the process is running."""
    return {"status": "alive"}


@router.get("/health/ready", tags=["Health"], response_model=ReadinessResponse)
async def readiness_probe(factory: ServiceFactory = Depends(get_service_factory)):
    """Readiness probe - at least one tenant must be fully configured."""
    registry = factory.registry
    configured, incomplete = [], []
    for agent_id in registry.agent_ids():
        try:
            registry.validate(registry.resolve(agent_id))
            configured.append(agent_id)
        except MissingCredential:
            incomplete.append(agent_id)

    body = ReadinessResponse(
        status="ready" if configured else "not_ready",
        configured_tenants=configured,
        incomplete_tenants=incomplete,
    )
    return JSONResponse(status_code=200 if configured else 503, content=body.model_dump())


@router.get("/metrics", tags=["Health"])
async def metrics():
    """Prometheus metrics endpoint."""
    return get_metrics_response()
