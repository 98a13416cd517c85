"""Health check endpoints."""

from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from clipflow.api.dependencies import FactoryDep, OrchestratorDep, SettingsDep

router = APIRouter()


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    message: str | None = Field(default=None, description="Additional details")
    latency_ms: float | None = Field(default=None, description="Probe latency")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    active_sessions: int = Field(description="Submissions held in memory")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Get overall health status of the service and its components.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
    orchestrator: OrchestratorDep,
) -> HealthResponse:
    """Check health of the storage backend and report session load."""
    components: list[ComponentHealth] = []

    probe = await factory.get_blob_storage().health_check()
    components.append(
        ComponentHealth(
            name="blob_storage",
            status=HealthStatus.HEALTHY if probe.healthy else HealthStatus.UNHEALTHY,
            message=probe.message,
            latency_ms=round(probe.latency_ms, 2),
        )
    )

    overall_status = (
        HealthStatus.HEALTHY
        if all(c.status == HealthStatus.HEALTHY for c in components)
        else HealthStatus.DEGRADED
    )

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        active_sessions=len(orchestrator.sessions),
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Simple liveness check for Kubernetes probes.",
)
async def liveness() -> LivenessResponse:
    """Simple liveness check - just verifies the app is running."""
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Readiness check for Kubernetes probes.",
)
async def readiness(factory: FactoryDep) -> ReadinessResponse:
    """Ready once the object store answers."""
    probe = await factory.get_blob_storage().health_check()
    checks = {"blob_storage": probe.healthy}
    return ReadinessResponse(ready=all(checks.values()), checks=checks)
