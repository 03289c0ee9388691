"""Rate-limited mapping of unhealthy readings to repair actions."""

import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from prometheus_client import Counter
from structlog.typing import FilteringBoundLogger

from ..core.exceptions import DuplicateRepairError
from ..core.logging import get_logger, log_repair_complete, log_repair_start
from ..models.healing import HealingAttempt, RepairOutcome
from ..models.health import HealthReading
from ..utils import utcnow

HealthSnapshot = Mapping[str, HealthReading]
RepairTriggerFn = Callable[[HealthSnapshot], bool]
RepairActionFn = Callable[[], Awaitable[dict[str, Any]]]

REPAIR_COUNT = Counter(
    "mhb_repairs_total", "Executed self-healing repairs", ["repair", "outcome"]
)


@dataclass(frozen=True)
class RepairDefinition:
    """A remediation action guarded by a predicate and a cooldown."""

    label: str
    trigger: RepairTriggerFn
    action: RepairActionFn
    cooldown_seconds: float


@dataclass(frozen=True)
class _Attempt:
    monotonic: float
    at: datetime


class RepairTrigger:
    """Evaluates registered repairs against a health snapshot."""

    def __init__(
        self,
        logger: FilteringBoundLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = logger or get_logger(__name__)
        self._clock = clock
        self._repairs: dict[str, RepairDefinition] = {}
        self._attempts: dict[str, _Attempt] = {}

    @property
    def repairs(self) -> dict[str, RepairDefinition]:
        return dict(self._repairs)

    def register_repair(self, name: str, definition: RepairDefinition) -> None:
        """Register a repair.

        Raises:
            DuplicateRepairError: If ``name`` is already registered
        """
        if name in self._repairs:
            raise DuplicateRepairError(name)
        self._repairs[name] = definition
        self.logger.debug(
            "Repair registered",
            repair=name,
            label=definition.label,
            cooldown_seconds=definition.cooldown_seconds,
        )

    def cooldown_remaining(self, name: str) -> float:
        """Seconds until ``name`` may run again; 0 if it never ran."""
        attempt = self._attempts.get(name)
        repair = self._repairs.get(name)
        if attempt is None or repair is None:
            return 0.0
        remaining = attempt.monotonic + repair.cooldown_seconds - self._clock()
        return remaining if remaining > 0 else 0.0

    async def evaluate(self, snapshot: HealthSnapshot) -> list[RepairOutcome]:
        """Run every triggered repair whose cooldown has elapsed.

        Repairs run one after another so that two actions never mutate
        shared state at the same time.
        """
        outcomes: list[RepairOutcome] = []

        for name, repair in list(self._repairs.items()):
            try:
                triggered = repair.trigger(snapshot)
            except Exception as e:
                self.logger.error(
                    "Repair trigger failed",
                    repair=name,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                continue

            if not triggered:
                continue

            remaining = self.cooldown_remaining(name)
            if remaining > 0:
                self.logger.debug(
                    "Repair in cooldown period",
                    repair=name,
                    cooldown_remaining=remaining,
                )
                continue

            outcomes.append(await self._execute(name, repair))

        return outcomes

    async def _execute(self, name: str, repair: RepairDefinition) -> RepairOutcome:
        log_repair_start(self.logger, name, repair.label)
        try:
            result = await repair.action()
        except Exception as e:
            outcome = RepairOutcome(repair_name=name, success=False, error=str(e))
            self.logger.error(
                "Repair failed",
                repair=name,
                label=repair.label,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
        else:
            outcome = RepairOutcome(repair_name=name, success=True, result=result)
            log_repair_complete(self.logger, name, repair.label, result)

        # Recorded whether or not the action succeeded
        self._attempts[name] = _Attempt(monotonic=self._clock(), at=utcnow())
        REPAIR_COUNT.labels(
            repair=name, outcome="success" if outcome.success else "failure"
        ).inc()
        return outcome

    def get_history(self) -> list[HealingAttempt]:
        """Return the last attempt of every repair that has run, newest first."""
        history = []
        for name, attempt in self._attempts.items():
            repair = self._repairs.get(name)
            history.append(
                HealingAttempt(
                    repair_name=name,
                    repair_description=repair.label if repair else name,
                    last_attempt=attempt.at,
                    cooldown_remaining=self.cooldown_remaining(name),
                )
            )
        return sorted(history, key=lambda h: h.last_attempt, reverse=True)
