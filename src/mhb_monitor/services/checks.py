"""Built-in health checks."""

import gc
import os
import platform
import time
from collections.abc import Callable

from ..core.config import Settings
from ..models.health import HealthReading
from .health_monitor import HealthCheckDefinition
from .memory import MemoryProbe
from .metrics_store import PerformanceMetrics


def server_check(
    memory_probe: MemoryProbe, started_at: float, clock: Callable[[], float]
) -> HealthReading:
    """Always healthy; reports uptime and memory."""
    return HealthReading(
        healthy=True,
        uptime=clock() - started_at,
        memory=memory_probe().to_dict(),
        pid=os.getpid(),
        python_version=platform.python_version(),
    )


def memory_check(memory_probe: MemoryProbe, settings: Settings) -> HealthReading:
    usage = memory_probe()
    return HealthReading(
        healthy=usage.percent < settings.memory_threshold_percent,
        usage_percent=usage.percent,
        heap_used=usage.heap_used,
        heap_total=usage.heap_total,
        rss=usage.rss,
        warning_threshold=settings.memory_threshold_percent,
        critical_threshold=settings.memory_critical_percent,
    )


def response_time_check(
    metrics: PerformanceMetrics, settings: Settings
) -> HealthReading:
    recent = metrics.recent(settings.response_time_window)
    if not recent:
        return HealthReading(healthy=True, average_response_time=0.0)

    average = sum(s.response_time_ms for s in recent) / len(recent)
    return HealthReading(
        healthy=average < settings.response_time_threshold_ms,
        average_response_time=average,
        threshold=settings.response_time_threshold_ms,
        recent_requests=len(recent),
    )


def error_rate_check(metrics: PerformanceMetrics, settings: Settings) -> HealthReading:
    recent = metrics.recent(settings.error_rate_window)
    if not recent:
        return HealthReading(healthy=True, error_rate=0.0)

    error_count = sum(1 for s in recent if s.is_error)
    error_rate = (error_count / len(recent)) * 100
    return HealthReading(
        healthy=error_rate < settings.error_rate_threshold_percent,
        error_rate=error_rate,
        error_count=error_count,
        total_requests=len(recent),
        threshold=settings.error_rate_threshold_percent,
    )


def runtime_heap_check(memory_probe: MemoryProbe, settings: Settings) -> HealthReading:
    """Memory usage against the stricter runtime threshold, with GC statistics."""
    usage = memory_probe()
    return HealthReading(
        healthy=usage.percent < settings.runtime_heap_threshold_percent,
        heap_used_percent=usage.percent,
        gc_enabled=gc.isenabled(),
        gc_counts=list(gc.get_count()),
        gc_thresholds=list(gc.get_threshold()),
        gc_stats=gc.get_stats(),
        threshold=settings.runtime_heap_threshold_percent,
    )


def build_default_checks(
    settings: Settings,
    metrics: PerformanceMetrics,
    memory_probe: MemoryProbe,
    started_at: float | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> dict[str, HealthCheckDefinition]:
    """Build the standard check set keyed by check name."""
    started = clock() if started_at is None else started_at

    return {
        "server": HealthCheckDefinition(
            label="Server Health",
            check=lambda: server_check(memory_probe, started, clock),
            interval_seconds=settings.server_check_interval_seconds,
            critical=True,
        ),
        "memory": HealthCheckDefinition(
            label="Memory Usage",
            check=lambda: memory_check(memory_probe, settings),
            interval_seconds=settings.memory_check_interval_seconds,
            critical=True,
        ),
        "response_time": HealthCheckDefinition(
            label="Response Time",
            check=lambda: response_time_check(metrics, settings),
            interval_seconds=settings.response_time_check_interval_seconds,
            critical=False,
        ),
        "error_rate": HealthCheckDefinition(
            label="Error Rate",
            check=lambda: error_rate_check(metrics, settings),
            interval_seconds=settings.error_rate_check_interval_seconds,
            critical=True,
        ),
        "runtime_heap": HealthCheckDefinition(
            label="Runtime Heap",
            check=lambda: runtime_heap_check(memory_probe, settings),
            interval_seconds=settings.runtime_heap_check_interval_seconds,
            critical=True,
        ),
    }
