"""Models describing repairs, error patterns and performance samples."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..utils import utcnow


class PerformanceSample(BaseModel):
    """A single recorded request timing."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(..., description="Request path")
    response_time_ms: float = Field(..., ge=0, description="Response time in ms")
    status_code: int = Field(..., description="HTTP status code")
    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class RepairOutcome(BaseModel):
    """Result of one executed repair action."""

    repair_name: str
    success: bool
    result: dict[str, Any] | None = None
    error: str | None = None
    executed_at: datetime = Field(default_factory=utcnow)


class HealingAttempt(BaseModel):
    """Last invocation of a repair and the time left on its cooldown."""

    repair_name: str = Field(..., description="Registered repair name")
    repair_description: str = Field(..., description="Human-readable repair label")
    last_attempt: datetime = Field(..., description="When the repair last ran")
    cooldown_remaining: float = Field(
        ..., ge=0, description="Seconds until the repair may run again"
    )


class ErrorMessage(BaseModel):
    """Raw error message observed for a pattern."""

    message: str
    timestamp: datetime = Field(default_factory=utcnow)


class ErrorPatternSummary(BaseModel):
    """Aggregated view of a recurring error pattern."""

    pattern: str
    count: int
    first_seen: datetime
    last_seen: datetime
    recent_messages: list[ErrorMessage] = Field(default_factory=list)
