"""Exception hierarchy for the monitoring service."""

from typing import Any


class MonitorError(Exception):
    """Base exception for monitoring service errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RegistrationError(MonitorError):
    """Raised when a check or repair cannot be registered."""


class DuplicateCheckError(RegistrationError):
    """Raised when a health check name is already registered."""

    def __init__(self, name: str):
        super().__init__(
            f"Health check '{name}' is already registered", {"check": name}
        )
        self.name = name


class DuplicateRepairError(RegistrationError):
    """Raised when a repair name is already registered."""

    def __init__(self, name: str):
        super().__init__(f"Repair '{name}' is already registered", {"repair": name})
        self.name = name


class UnknownCheckError(MonitorError):
    """Raised when polling a health check that was never registered."""

    def __init__(self, name: str):
        super().__init__(f"Health check '{name}' is not registered", {"check": name})
        self.name = name


class CheckExecutionError(MonitorError):
    """Raised when a health check produces an invalid result."""
