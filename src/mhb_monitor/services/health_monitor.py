"""Health check registry and polling loop."""

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from prometheus_client import Gauge
from structlog.typing import FilteringBoundLogger

from ..core.exceptions import (
    CheckExecutionError,
    DuplicateCheckError,
    UnknownCheckError,
)
from ..core.logging import get_logger
from ..models.health import HealthReading
from .repair_trigger import RepairTrigger

CheckFn = Callable[[], HealthReading | Awaitable[HealthReading]]

COMPONENT_HEALTH = Gauge(
    "mhb_system_health",
    "System health status (1 = healthy, 0 = unhealthy)",
    ["component"],
)


@dataclass(frozen=True)
class HealthCheckDefinition:
    """A named health check polled on its own interval."""

    label: str
    check: CheckFn
    interval_seconds: float
    critical: bool = False


@dataclass(frozen=True)
class _CachedReading:
    reading: HealthReading
    taken_at: float


class HealthMonitor:
    """Polls registered health checks and hands failures to the repair trigger.

    Every check runs on its own asyncio task. The latest reading of each
    check is cached; a failing poll evaluates repairs against all cached
    readings that are still within their check's polling interval.
    """

    def __init__(
        self,
        repair_trigger: RepairTrigger | None = None,
        logger: FilteringBoundLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repair_trigger = repair_trigger
        self.logger = logger or get_logger(__name__)
        self._clock = clock
        self._checks: dict[str, HealthCheckDefinition] = {}
        self._latest: dict[str, _CachedReading] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def checks(self) -> dict[str, HealthCheckDefinition]:
        return dict(self._checks)

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks.values())

    def register_check(self, name: str, definition: HealthCheckDefinition) -> None:
        """Register a health check.

        Raises:
            DuplicateCheckError: If ``name`` is already registered
        """
        if name in self._checks:
            raise DuplicateCheckError(name)
        self._checks[name] = definition
        self.logger.debug(
            "Health check registered",
            check=name,
            label=definition.label,
            interval_seconds=definition.interval_seconds,
            critical=definition.critical,
        )

    def start(self) -> None:
        """Start polling every registered check. No-op if already running."""
        if self.is_running:
            return

        for name, definition in self._checks.items():
            self._tasks[name] = asyncio.create_task(
                self._poll_loop(name, definition), name=f"health-check:{name}"
            )

        self.logger.info("Continuous monitoring started", checks=list(self._checks))

    async def stop(self) -> None:
        """Cancel all polling tasks."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            self.logger.info("Continuous monitoring stopped")

    async def _poll_loop(self, name: str, definition: HealthCheckDefinition) -> None:
        while True:
            await asyncio.sleep(definition.interval_seconds)
            try:
                await self.poll(name)
            except Exception as e:
                self.logger.error(
                    "Health check poll failed",
                    check=name,
                    error=str(e),
                    exc_info=True,
                )

    async def _run_check(
        self, name: str, definition: HealthCheckDefinition
    ) -> HealthReading:
        result = definition.check()
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, HealthReading):
            raise CheckExecutionError(
                f"Health check '{name}' returned {type(result).__name__}",
                {"check": name},
            )
        return result.model_copy(
            update={"component": name, "critical": definition.critical}
        )

    async def poll(self, name: str) -> HealthReading | None:
        """Run one check, cache its reading and trigger repairs if unhealthy.

        Returns:
            HealthReading | None: The reading, or None if the check raised
        """
        definition = self._checks.get(name)
        if definition is None:
            raise UnknownCheckError(name)

        try:
            reading = await self._run_check(name, definition)
        except Exception as e:
            self.logger.error(
                "Health check error",
                check=name,
                label=definition.label,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return None

        self._latest[name] = _CachedReading(reading=reading, taken_at=self._clock())
        COMPONENT_HEALTH.labels(component=name).set(1 if reading.healthy else 0)

        if reading.healthy:
            self.logger.debug("Health check passed", check=name, label=definition.label)
            return reading

        self.logger.warning(
            "Health check failed",
            check=name,
            label=definition.label,
            critical=definition.critical,
            measurements=reading.measurements(),
        )
        await self._trigger_healing(name)
        return reading

    async def _trigger_healing(self, name: str) -> None:
        if self.repair_trigger is None:
            return
        try:
            await self.repair_trigger.evaluate(self.latest_readings())
        except Exception as e:
            self.logger.error(
                "Healing evaluation failed",
                check=name,
                error=str(e),
                exc_info=True,
            )

    def latest_readings(self) -> dict[str, HealthReading]:
        """Return cached readings taken within their check's polling interval."""
        now = self._clock()
        fresh = {}
        for name, cached in self._latest.items():
            definition = self._checks.get(name)
            if definition is None:
                continue
            if now - cached.taken_at <= definition.interval_seconds:
                fresh[name] = cached.reading
        return fresh

    async def get_status(self) -> dict[str, HealthReading]:
        """Run every check on demand and return name -> reading."""
        status: dict[str, HealthReading] = {}
        for name, definition in self._checks.items():
            try:
                status[name] = await self._run_check(name, definition)
            except Exception as e:
                self.logger.warning("Health check error", check=name, error=str(e))
                status[name] = HealthReading(
                    healthy=False,
                    component=name,
                    critical=definition.critical,
                    error=str(e),
                )
        return status
