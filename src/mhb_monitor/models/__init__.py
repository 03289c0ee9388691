"""Data models for the monitoring service."""

from .healing import (
    ErrorMessage,
    ErrorPatternSummary,
    HealingAttempt,
    PerformanceSample,
    RepairOutcome,
)
from .health import HealthReading, HealthResponse, ReadinessResponse

__all__ = [
    "ErrorMessage",
    "ErrorPatternSummary",
    "HealingAttempt",
    "HealthReading",
    "HealthResponse",
    "PerformanceSample",
    "ReadinessResponse",
    "RepairOutcome",
]
