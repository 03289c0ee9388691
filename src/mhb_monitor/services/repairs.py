"""Built-in repair actions."""

import gc
import time
from collections import Counter
from collections.abc import Callable
from typing import Any

from structlog.typing import FilteringBoundLogger

from ..core.config import Settings
from ..utils import utcnow
from .memory import MemoryProbe
from .metrics_store import PerformanceMetrics
from .repair_trigger import HealthSnapshot, RepairDefinition

MEMORY_CLEANUP_MAX_SAMPLES = 1000
MEMORY_CLEANUP_RETAIN_SAMPLES = 500
RESPONSE_OPTIMIZATION_RETAIN_SAMPLES = 100
ERROR_MITIGATION_WINDOW = 20
ERROR_MITIGATION_MIN_COUNT = 3
STABILITY_MIN_CRITICAL_FAILURES = 2
STABILITY_RECENT_ERRORS = 10


def component_unhealthy(name: str) -> Callable[[HealthSnapshot], bool]:
    """Trigger that fires when ``name`` is present and unhealthy."""

    def trigger(snapshot: HealthSnapshot) -> bool:
        reading = snapshot.get(name)
        return reading is not None and not reading.healthy

    return trigger


def multiple_critical_failures(snapshot: HealthSnapshot) -> bool:
    critical = [r for r in snapshot.values() if r.critical and not r.healthy]
    return len(critical) >= STABILITY_MIN_CRITICAL_FAILURES


class DefaultRepairs:
    """Repair actions operating on the shared performance metrics."""

    def __init__(
        self,
        metrics: PerformanceMetrics,
        memory_probe: MemoryProbe,
        logger: FilteringBoundLogger,
        started_at: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.metrics = metrics
        self.memory_probe = memory_probe
        self.logger = logger
        self.started_at = started_at
        self._clock = clock

    async def memory_cleanup(self) -> dict[str, Any]:
        self.logger.warning("Triggering memory cleanup due to high usage")

        collected = gc.collect()
        self.logger.info("Garbage collection completed", collected=collected)

        trimmed = 0
        if len(self.metrics) > MEMORY_CLEANUP_MAX_SAMPLES:
            trimmed = self.metrics.trim(MEMORY_CLEANUP_RETAIN_SAMPLES)
            self.logger.info("Performance metrics cleaned up", removed=trimmed)

        return {
            "success": True,
            "action": "memory_cleanup",
            "collected": collected,
            "samples_removed": trimmed,
        }

    async def response_optimization(self) -> dict[str, Any]:
        self.logger.warning("Optimizing response times due to slow performance")

        trimmed = self.metrics.trim(RESPONSE_OPTIMIZATION_RETAIN_SAMPLES)
        self.logger.warning(
            "Response time degradation detected, monitoring for patterns",
            samples_removed=trimmed,
        )

        return {
            "success": True,
            "action": "response_optimization",
            "samples_removed": trimmed,
        }

    async def error_mitigation(self) -> dict[str, Any]:
        self.logger.warning("Analyzing error patterns for mitigation")

        recent_errors = self.metrics.errors(ERROR_MITIGATION_WINDOW)
        errors_by_endpoint = Counter(s.endpoint for s in recent_errors)

        for endpoint, count in errors_by_endpoint.items():
            if count >= ERROR_MITIGATION_MIN_COUNT:
                self.logger.error(
                    "High error rate detected",
                    endpoint=endpoint,
                    error_count=count,
                    recommendation="Consider endpoint review",
                )

        return {
            "success": True,
            "action": "error_analysis",
            "patterns": dict(errors_by_endpoint),
        }

    async def stability_check(self) -> dict[str, Any]:
        self.logger.error(
            "Multiple critical issues detected, system stability at risk"
        )

        report = {
            "timestamp": utcnow().isoformat(),
            "uptime": self._clock() - self.started_at,
            "memory_usage": self.memory_probe().to_dict(),
            "recent_errors": [
                s.model_dump(mode="json")
                for s in self.metrics.server_errors(STABILITY_RECENT_ERRORS)
            ],
            "recommendation": "System restart may be required if issues persist",
        }
        self.logger.error("Stability report", report=report)

        return {"success": True, "action": "stability_assessment", "report": report}


def build_default_repairs(
    settings: Settings,
    repairs: DefaultRepairs,
) -> dict[str, RepairDefinition]:
    """Build the standard repair set keyed by repair name."""
    return {
        "memory_cleanup": RepairDefinition(
            label="Memory Cleanup",
            trigger=component_unhealthy("memory"),
            action=repairs.memory_cleanup,
            cooldown_seconds=settings.memory_cleanup_cooldown_seconds,
        ),
        "response_optimization": RepairDefinition(
            label="Response Time Optimization",
            trigger=component_unhealthy("response_time"),
            action=repairs.response_optimization,
            cooldown_seconds=settings.response_optimization_cooldown_seconds,
        ),
        "error_mitigation": RepairDefinition(
            label="Error Pattern Mitigation",
            trigger=component_unhealthy("error_rate"),
            action=repairs.error_mitigation,
            cooldown_seconds=settings.error_mitigation_cooldown_seconds,
        ),
        "stability_check": RepairDefinition(
            label="System Stability Check",
            trigger=multiple_critical_failures,
            action=repairs.stability_check,
            cooldown_seconds=settings.stability_check_cooldown_seconds,
        ),
    }
