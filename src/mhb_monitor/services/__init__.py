"""Service layer for the monitoring service."""

from .error_tracker import ErrorHooks, ErrorPatternTracker, extract_error_pattern
from .health_monitor import HealthCheckDefinition, HealthMonitor
from .metrics_store import PerformanceMetrics
from .repair_trigger import RepairDefinition, RepairTrigger
from .self_healing import SelfHealingSystem

__all__ = [
    "ErrorHooks",
    "ErrorPatternTracker",
    "HealthCheckDefinition",
    "HealthMonitor",
    "PerformanceMetrics",
    "RepairDefinition",
    "RepairTrigger",
    "SelfHealingSystem",
    "extract_error_pattern",
]
