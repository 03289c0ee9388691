"""Health check models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..utils import utcnow


class HealthReading(BaseModel):
    """Snapshot produced by a single health check poll.

    Measurement fields specific to the check (``usage_percent``,
    ``average_response_time`` ...) are carried as extra attributes.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    healthy: bool = Field(..., description="Whether the component is healthy")
    component: str = Field(default="", description="Name of the reporting check")
    critical: bool = Field(
        default=False, description="Whether the reporting check is critical"
    )
    timestamp: datetime = Field(
        default_factory=utcnow, description="When the reading was taken"
    )

    def measurements(self) -> dict[str, Any]:
        """Return the check-specific measurement fields."""
        return dict(self.model_extra or {})


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., title="Status", description="Overall health status")
    version: str = Field(..., title="Version", description="Service version")
    timestamp: datetime = Field(
        default_factory=utcnow,
        title="Timestamp",
        description="Health check timestamp",
    )
    environment: str = Field(
        default="development", title="Environment", description="Runtime environment"
    )
    components: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        title="Components",
        description="Health status of individual components",
    )
    uptime_seconds: float = Field(
        ..., title="Uptime Seconds", description="Service uptime in seconds"
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service accepts traffic")
    services: dict[str, str] = Field(
        default_factory=dict, description="State of each hosted service"
    )
    timestamp: datetime = Field(default_factory=utcnow)
