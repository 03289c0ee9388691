"""Self-healing system wiring health checks, repairs and error tracking."""

import asyncio
import gc
import time
from collections.abc import Awaitable, Callable

from structlog.typing import FilteringBoundLogger

from ..core.config import Settings
from ..core.logging import get_logger
from ..models.healing import ErrorPatternSummary, HealingAttempt, PerformanceSample
from ..models.health import HealthReading
from .checks import build_default_checks
from .error_tracker import ErrorHooks, ErrorPatternTracker
from .health_monitor import HealthMonitor
from .memory import MemoryProbe, read_memory_usage
from .metrics_store import PerformanceMetrics
from .repair_trigger import RepairTrigger
from .repairs import DefaultRepairs, build_default_repairs


class SelfHealingSystem:
    """Service owning the monitor, the repair trigger and the error tracker.

    Constructed once at startup and passed to whatever needs to record
    request metrics or query health.
    """

    def __init__(
        self,
        settings: Settings,
        logger: FilteringBoundLogger | None = None,
        memory_probe: MemoryProbe = read_memory_usage,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.logger = logger or get_logger(__name__)
        self.memory_probe = memory_probe
        self._clock = clock
        self.started_at = clock()

        self.metrics = PerformanceMetrics()
        self.error_hooks = ErrorHooks(self.logger)
        self.error_tracker = ErrorPatternTracker(
            self.logger,
            max_patterns=settings.max_error_patterns,
            history_size=settings.error_pattern_history,
            recurring_threshold=settings.recurring_pattern_threshold,
        )
        self.repair_trigger = RepairTrigger(self.logger, clock=clock)
        self.monitor = HealthMonitor(self.repair_trigger, self.logger, clock=clock)

        self._maintenance_tasks: list[asyncio.Task[None]] = []
        self._unsubscribe: Callable[[], None] | None = None
        self._initialized = False

    def register_defaults(self) -> None:
        """Register the built-in health checks and repairs."""
        checks = build_default_checks(
            self.settings,
            self.metrics,
            self.memory_probe,
            started_at=self.started_at,
            clock=self._clock,
        )
        for name, check in checks.items():
            self.monitor.register_check(name, check)

        repairs = DefaultRepairs(
            self.metrics,
            self.memory_probe,
            self.logger,
            started_at=self.started_at,
            clock=self._clock,
        )
        for name, repair in build_default_repairs(self.settings, repairs).items():
            self.repair_trigger.register_repair(name, repair)

    def initialize(self, install_global_hooks: bool | None = None) -> None:
        """Register defaults, subscribe error tracking and start monitoring.

        Must be called from within a running event loop.
        """
        if self._initialized:
            return

        self.logger.info("Initializing self-healing system")

        self.register_defaults()
        self._unsubscribe = self.error_hooks.on_error(self.error_tracker.record)

        if install_global_hooks is None:
            install_global_hooks = self.settings.install_global_error_hooks
        if install_global_hooks:
            self.error_hooks.install_global(asyncio.get_running_loop())

        self.monitor.start()
        self._start_maintenance()
        self._initialized = True

        self.logger.info(
            "Self-healing system initialized",
            checks=list(self.monitor.checks),
            repairs=list(self.repair_trigger.repairs),
        )

    def _start_maintenance(self) -> None:
        self._maintenance_tasks = [
            asyncio.create_task(
                self._every(
                    self.settings.metrics_cleanup_interval_seconds,
                    self.cleanup_metrics,
                ),
                name="metrics-cleanup",
            ),
            asyncio.create_task(
                self._every(
                    self.settings.memory_optimize_interval_seconds,
                    self.optimize_memory,
                ),
                name="memory-optimizer",
            ),
        ]

    async def _every(
        self, interval_seconds: float, job: Callable[[], Awaitable[object]]
    ) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await job()
            except Exception as e:
                self.logger.error(
                    "Maintenance job failed",
                    job=getattr(job, "__name__", repr(job)),
                    error=str(e),
                    exc_info=True,
                )

    async def cleanup_metrics(self) -> int:
        """Trim the metric history once it exceeds the configured maximum."""
        if len(self.metrics) <= self.settings.metrics_max_samples:
            return 0
        removed = self.metrics.trim(self.settings.metrics_retain_samples)
        self.logger.info("Performance metrics auto-cleaned", removed=removed)
        return removed

    async def optimize_memory(self) -> int | None:
        """Run a garbage collection when memory usage is above the threshold.

        Returns:
            int | None: Objects collected, or None if no collection ran
        """
        usage = self.memory_probe()
        if usage.percent <= self.settings.memory_optimize_threshold_percent:
            return None
        collected = gc.collect()
        self.logger.debug(
            "Memory optimization completed",
            collected=collected,
            usage_percent=usage.percent,
        )
        return collected

    async def shutdown(self) -> None:
        """Stop monitoring and maintenance, and restore global hooks."""
        await self.monitor.stop()

        tasks = self._maintenance_tasks
        self._maintenance_tasks = []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self.error_hooks.uninstall_global()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        self._initialized = False
        self.logger.info("Self-healing system stopped")

    def record_metric(
        self, endpoint: str, response_time_ms: float, status_code: int
    ) -> PerformanceSample:
        return self.metrics.record(endpoint, response_time_ms, status_code)

    def report_error(self, message: str) -> None:
        """Feed an explicitly logged error into the error hooks."""
        self.error_hooks.emit(message)

    @property
    def uptime_seconds(self) -> float:
        return self._clock() - self.started_at

    async def get_status(self) -> dict[str, HealthReading]:
        return await self.monitor.get_status()

    def get_error_patterns(self) -> list[ErrorPatternSummary]:
        return self.error_tracker.summary()

    def get_healing_history(self) -> list[HealingAttempt]:
        return self.repair_trigger.get_history()
