"""Unit tests for the repair trigger."""

import pytest
from mhb_monitor.core.exceptions import DuplicateRepairError
from mhb_monitor.models.health import HealthReading
from mhb_monitor.services.repair_trigger import RepairDefinition, RepairTrigger


def unhealthy(component: str, critical: bool = False) -> HealthReading:
    return HealthReading(healthy=False, component=component, critical=critical)


def memory_failing(snapshot):
    reading = snapshot.get("memory")
    return reading is not None and not reading.healthy


@pytest.fixture
def trigger(mock_logger, clock):
    """Create a RepairTrigger driven by the fake clock."""
    return RepairTrigger(mock_logger, clock=clock)


class CallRecorder:
    """Async repair action that records invocations."""

    def __init__(self, result=None, error=None):
        self.calls = 0
        self.result = result or {"success": True}
        self.error = error

    async def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class TestRepairRegistration:
    """Test repair registration."""

    def test_register_repair(self, trigger):
        """Test registering a repair makes it available."""
        definition = RepairDefinition(
            label="Memory Cleanup",
            trigger=memory_failing,
            action=CallRecorder(),
            cooldown_seconds=300,
        )
        trigger.register_repair("memory_cleanup", definition)

        assert trigger.repairs == {"memory_cleanup": definition}

    def test_register_duplicate_repair(self, trigger):
        """Test registering the same name twice fails and keeps the original."""
        original = RepairDefinition("First", memory_failing, CallRecorder(), 300)
        trigger.register_repair("memory_cleanup", original)

        with pytest.raises(DuplicateRepairError) as exc_info:
            trigger.register_repair(
                "memory_cleanup",
                RepairDefinition("Second", memory_failing, CallRecorder(), 10),
            )

        assert exc_info.value.name == "memory_cleanup"
        assert trigger.repairs["memory_cleanup"] is original


class TestRepairEvaluation:
    """Test evaluating repairs against health snapshots."""

    @pytest.mark.asyncio
    async def test_evaluate_runs_triggered_repair(self, trigger):
        """Test a triggered repair runs and reports its result."""
        action = CallRecorder(result={"success": True, "action": "memory_cleanup"})
        trigger.register_repair(
            "memory_cleanup",
            RepairDefinition("Memory Cleanup", memory_failing, action, 300),
        )

        outcomes = await trigger.evaluate({"memory": unhealthy("memory")})

        assert action.calls == 1
        assert len(outcomes) == 1
        assert outcomes[0].repair_name == "memory_cleanup"
        assert outcomes[0].success is True
        assert outcomes[0].result == {"success": True, "action": "memory_cleanup"}

    @pytest.mark.asyncio
    async def test_evaluate_skips_untriggered_repair(self, trigger):
        """Test a repair whose predicate is false does not run."""
        action = CallRecorder()
        trigger.register_repair(
            "memory_cleanup",
            RepairDefinition("Memory Cleanup", memory_failing, action, 300),
        )

        outcomes = await trigger.evaluate(
            {"memory": HealthReading(healthy=True, component="memory")}
        )

        assert outcomes == []
        assert action.calls == 0
        assert trigger.get_history() == []

    @pytest.mark.asyncio
    async def test_cooldown_limits_executions(self, trigger, clock):
        """Test a repair runs once per cooldown window."""
        action = CallRecorder()
        trigger.register_repair(
            "memory_cleanup",
            RepairDefinition("Memory Cleanup", memory_failing, action, 300),
        )
        snapshot = {"memory": unhealthy("memory")}

        await trigger.evaluate(snapshot)
        clock.advance(299)
        await trigger.evaluate(snapshot)
        assert action.calls == 1

        clock.advance(1)
        await trigger.evaluate(snapshot)
        assert action.calls == 2

    @pytest.mark.asyncio
    async def test_failed_repair_records_cooldown(self, trigger, mock_logger):
        """Test a raising action is logged and still starts the cooldown."""
        failing = CallRecorder(error=RuntimeError("cleanup exploded"))
        trigger.register_repair(
            "memory_cleanup",
            RepairDefinition("Memory Cleanup", memory_failing, failing, 300),
        )
        snapshot = {"memory": unhealthy("memory")}

        outcomes = await trigger.evaluate(snapshot)

        assert outcomes[0].success is False
        assert outcomes[0].error == "cleanup exploded"
        assert trigger.cooldown_remaining("memory_cleanup") == 300
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args[0] == "Repair failed"

        await trigger.evaluate(snapshot)
        assert failing.calls == 1

    @pytest.mark.asyncio
    async def test_failed_repair_does_not_stop_others(self, trigger):
        """Test later repairs still run after an earlier one raises."""
        failing = CallRecorder(error=ValueError("boom"))
        healthy_action = CallRecorder()
        trigger.register_repair(
            "first", RepairDefinition("First", memory_failing, failing, 60)
        )
        trigger.register_repair(
            "second", RepairDefinition("Second", memory_failing, healthy_action, 60)
        )

        outcomes = await trigger.evaluate({"memory": unhealthy("memory")})

        assert [o.repair_name for o in outcomes] == ["first", "second"]
        assert [o.success for o in outcomes] == [False, True]
        assert healthy_action.calls == 1

    @pytest.mark.asyncio
    async def test_raising_trigger_skips_repair(self, trigger, mock_logger):
        """Test a predicate error is logged and the repair is skipped."""

        def broken(snapshot):
            raise KeyError("memory")

        action = CallRecorder()
        trigger.register_repair("broken", RepairDefinition("Broken", broken, action, 60))

        outcomes = await trigger.evaluate({"memory": unhealthy("memory")})

        assert outcomes == []
        assert action.calls == 0
        assert mock_logger.error.call_args.args[0] == "Repair trigger failed"

    @pytest.mark.asyncio
    async def test_repairs_run_sequentially(self, trigger):
        """Test repairs triggered together never overlap."""
        order = []

        def make_action(name):
            async def action():
                order.append(f"{name}:start")
                order.append(f"{name}:end")
                return {"success": True}

            return action

        for name in ("a", "b", "c"):
            trigger.register_repair(
                name, RepairDefinition(name, memory_failing, make_action(name), 60)
            )

        await trigger.evaluate({"memory": unhealthy("memory")})

        assert order == ["a:start", "a:end", "b:start", "b:end", "c:start", "c:end"]


class TestHealingHistory:
    """Test healing history reporting."""

    @pytest.mark.asyncio
    async def test_history_cooldown_decreases(self, trigger, clock):
        """Test cooldown_remaining counts down to zero after execution."""
        trigger.register_repair(
            "memory_cleanup",
            RepairDefinition("Memory Cleanup", memory_failing, CallRecorder(), 300),
        )
        await trigger.evaluate({"memory": unhealthy("memory")})

        history = trigger.get_history()
        assert len(history) == 1
        assert history[0].repair_name == "memory_cleanup"
        assert history[0].repair_description == "Memory Cleanup"
        assert history[0].cooldown_remaining == 300

        clock.advance(100)
        assert trigger.get_history()[0].cooldown_remaining == 200

        clock.advance(200)
        assert trigger.get_history()[0].cooldown_remaining == 0

        clock.advance(50)
        assert trigger.get_history()[0].cooldown_remaining == 0

    def test_cooldown_remaining_never_run(self, trigger):
        """Test a repair that never ran has no cooldown."""
        trigger.register_repair(
            "memory_cleanup",
            RepairDefinition("Memory Cleanup", memory_failing, CallRecorder(), 300),
        )

        assert trigger.cooldown_remaining("memory_cleanup") == 0.0
        assert trigger.cooldown_remaining("unknown") == 0.0
