"""Health endpoints for monitoring and orchestration."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from portal.config import settings

router = APIRouter(prefix="/health", tags=["health"])


class ServiceHealth(BaseModel):
    """Service identity and status."""

    status: str
    service: str
    version: str
    environment: str
    timestamp: datetime


class ProbeStatus(BaseModel):
    """Liveness probe result."""

    status: str


class ReadinessReport(BaseModel):
    """Readiness probe result with per-component checks."""

    status: str
    checks: dict[str, str]
    backend_url: str
    cached_queries: int = Field(default=0, description="Entries in the query cache")


@router.get("/", response_model=ServiceHealth)
async def health_check() -> ServiceHealth:
    """Report service identity."""
    return ServiceHealth(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.app_env,
        timestamp=datetime.now(UTC),
    )


@router.get("/live", response_model=ProbeStatus)
async def liveness() -> ProbeStatus:
    """The process is up."""
    return ProbeStatus(status="alive")


@router.get("/ready", response_model=ReadinessReport)
async def readiness(request: Request) -> ReadinessReport:
    """Ready once the backend client and the query cache exist.

    The backend itself is not called; its failures are reported per
    resource by the dashboard.
    """
    remote = getattr(request.app.state, "remote_client", None)
    cache = getattr(request.app.state, "query_cache", None)
    checks = {
        "api": "ok",
        "backend_client": "ok" if remote is not None else "not_configured",
        "query_cache": "ok" if cache is not None else "not_configured",
    }
    return ReadinessReport(
        status="ready" if all(v == "ok" for v in checks.values()) else "not_ready",
        checks=checks,
        backend_url=settings.api_base_url,
        cached_queries=len(cache) if cache is not None else 0,
    )
