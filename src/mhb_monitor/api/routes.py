"""API routes for health, readiness and self-healing status."""

import time
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from ..core.config import Settings
from ..models.healing import ErrorPatternSummary, HealingAttempt
from ..models.health import HealthResponse, ReadinessResponse
from ..services.self_healing import SelfHealingSystem

router = APIRouter()
self_healing_router = APIRouter(prefix="/self-healing", tags=["self-healing"])


def get_settings_dependency(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_self_healing(request: Request) -> SelfHealingSystem:
    """Get the self-healing system started by the application lifespan."""
    system: SelfHealingSystem | None = getattr(
        request.app.state, "self_healing", None
    )
    if system is None:
        raise HTTPException(status_code=503, detail="Self-healing is not running")
    return system


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(
    request: Request, settings: Settings = Depends(get_settings_dependency)
) -> HealthResponse:
    """Report service health, including every component check."""
    system: SelfHealingSystem | None = getattr(
        request.app.state, "self_healing", None
    )

    components: dict[str, dict[str, Any]] = {}
    if system is not None:
        status = await system.get_status()
        components = {
            name: reading.model_dump(mode="json") for name, reading in status.items()
        }

    start_time = getattr(request.app.state, "start_time", time.time())
    healthy = all(c.get("healthy", False) for c in components.values())

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=settings.version,
        environment=settings.environment,
        components=components,
        uptime_seconds=time.time() - start_time,
    )


@router.get("/ready", response_model=ReadinessResponse, tags=["health"])
async def readiness_check(request: Request) -> ReadinessResponse:
    """Report whether the hosted services are operational."""
    system: SelfHealingSystem | None = getattr(
        request.app.state, "self_healing", None
    )
    return ReadinessResponse(
        ready=True,
        services={
            "server": "operational",
            "self_healing": "operational" if system is not None else "disabled",
        },
    )


@self_healing_router.get("/status")
async def self_healing_status(
    system: SelfHealingSystem = Depends(get_self_healing),
) -> dict[str, Any]:
    """Run every health check and return the readings."""
    status = await system.get_status()
    return {
        "checks": {
            name: reading.model_dump(mode="json") for name, reading in status.items()
        },
        "uptime_seconds": system.uptime_seconds,
    }


@self_healing_router.get("/errors", response_model=list[ErrorPatternSummary])
async def error_patterns(
    system: SelfHealingSystem = Depends(get_self_healing),
) -> list[ErrorPatternSummary]:
    """List recurring error patterns, most frequent first."""
    return system.get_error_patterns()


@self_healing_router.get("/history", response_model=list[HealingAttempt])
async def healing_history(
    system: SelfHealingSystem = Depends(get_self_healing),
) -> list[HealingAttempt]:
    """List the most recent attempt of every repair."""
    return system.get_healing_history()
