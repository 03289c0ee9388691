"""Recurring error pattern tracking and process-wide error hooks."""

import asyncio
import re
import sys
import threading
from collections import OrderedDict, deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from types import TracebackType
from typing import Any

from structlog.typing import FilteringBoundLogger

from ..core.logging import get_logger
from ..models.healing import ErrorMessage, ErrorPatternSummary
from ..utils import utcnow

MAX_PATTERN_LENGTH = 200

_UUID_RE = re.compile(
    r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}", re.IGNORECASE
)
_EMAIL_RE = re.compile(r"\b[\w.+-]+@[\w.-]+\.\w+\b")
_PATH_RE = re.compile(r"/[^\s]+")
_NUMBER_RE = re.compile(r"\d+")

ErrorListener = Callable[[str], None]


def extract_error_pattern(message: str) -> str:
    """Generalize an error message into a pattern key.

    UUIDs and e-mail addresses are replaced before paths and digit runs,
    otherwise their digits would be consumed first.
    """
    pattern = _UUID_RE.sub("UUID", message)
    pattern = _EMAIL_RE.sub("EMAIL", pattern)
    pattern = _PATH_RE.sub("PATH", pattern)
    pattern = _NUMBER_RE.sub("NUMBER", pattern)
    return pattern[:MAX_PATTERN_LENGTH]


@dataclass
class _PatternState:
    first_seen: datetime
    last_seen: datetime
    messages: deque[ErrorMessage]
    count: int = 0


class ErrorPatternTracker:
    """Counts normalized error messages.

    The number of distinct patterns is capped; once full, the least
    recently seen pattern is evicted.
    """

    def __init__(
        self,
        logger: FilteringBoundLogger | None = None,
        max_patterns: int = 1000,
        history_size: int = 10,
        recurring_threshold: int = 5,
    ):
        self.logger = logger or get_logger(__name__)
        self.max_patterns = max_patterns
        self.history_size = history_size
        self.recurring_threshold = recurring_threshold
        self._patterns: OrderedDict[str, _PatternState] = OrderedDict()

    def __len__(self) -> int:
        return len(self._patterns)

    def record(self, raw_message: str) -> str:
        """Record an observed error message and return its pattern key."""
        key = extract_error_pattern(raw_message)
        now = utcnow()

        state = self._patterns.get(key)
        if state is None:
            state = _PatternState(
                first_seen=now,
                last_seen=now,
                messages=deque(maxlen=self.history_size),
            )
            self._patterns[key] = state
            self._evict()
        else:
            self._patterns.move_to_end(key)

        state.count += 1
        state.last_seen = now
        state.messages.append(ErrorMessage(message=raw_message, timestamp=now))

        if state.count >= self.recurring_threshold:
            self.logger.warning(
                "Recurring error pattern detected",
                pattern=key,
                count=state.count,
                first_seen=state.first_seen.isoformat(),
                recommendation="Investigation recommended",
            )

        return key

    def _evict(self) -> None:
        while len(self._patterns) > self.max_patterns:
            evicted, state = self._patterns.popitem(last=False)
            self.logger.debug(
                "Error pattern evicted", pattern=evicted, count=state.count
            )

    def get(self, pattern: str) -> ErrorPatternSummary | None:
        state = self._patterns.get(pattern)
        return self._summarize(pattern, state) if state else None

    def _summarize(self, pattern: str, state: _PatternState) -> ErrorPatternSummary:
        return ErrorPatternSummary(
            pattern=pattern,
            count=state.count,
            first_seen=state.first_seen,
            last_seen=state.last_seen,
            recent_messages=list(state.messages)[-3:],
        )

    def summary(self) -> list[ErrorPatternSummary]:
        """Return all tracked patterns sorted by descending count."""
        patterns = [
            self._summarize(pattern, state) for pattern, state in self._patterns.items()
        ]
        return sorted(patterns, key=lambda p: p.count, reverse=True)


class ErrorHooks:
    """Fan-out of observed errors to subscribed listeners.

    ``install_global`` wires the interpreter's uncaught exception hooks and
    an asyncio loop's exception handler into ``emit``.
    """

    def __init__(self, logger: FilteringBoundLogger | None = None):
        self.logger = logger or get_logger(__name__)
        self._listeners: list[ErrorListener] = []
        self._previous_excepthook: Any = None
        self._previous_threading_excepthook: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous_loop_handler: Any = None
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def on_error(self, callback: ErrorListener) -> Callable[[], None]:
        """Subscribe to observed errors. Returns an unsubscribe callable."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def emit(self, message: str) -> None:
        """Deliver an error message to every listener."""
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception as e:
                self.logger.warning(
                    "Error listener failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                )

    def install_global(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Hook uncaught exceptions and unhandled task errors."""
        if self._installed:
            return

        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._excepthook

        self._previous_threading_excepthook = threading.excepthook
        threading.excepthook = self._threading_excepthook

        if loop is not None:
            self._loop = loop
            self._previous_loop_handler = loop.get_exception_handler()
            loop.set_exception_handler(self._loop_exception_handler)

        self._installed = True
        self.logger.debug("Global error hooks installed")

    def uninstall_global(self) -> None:
        """Restore the handlers replaced by ``install_global``."""
        if not self._installed:
            return

        if sys.excepthook == self._excepthook:
            sys.excepthook = self._previous_excepthook
        if threading.excepthook == self._threading_excepthook:
            threading.excepthook = self._previous_threading_excepthook
        if self._loop is not None and not self._loop.is_closed():
            self._loop.set_exception_handler(self._previous_loop_handler)

        self._loop = None
        self._previous_loop_handler = None
        self._installed = False

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        self.logger.error(
            "Uncaught exception detected",
            error=str(exc),
            error_type=exc_type.__name__,
            exc_info=(exc_type, exc, tb),
        )
        self.emit(str(exc))
        if self._previous_excepthook is not None:
            self._previous_excepthook(exc_type, exc, tb)

    def _threading_excepthook(self, args: threading.ExceptHookArgs) -> None:
        self.logger.error(
            "Uncaught thread exception detected",
            error=str(args.exc_value),
            error_type=args.exc_type.__name__,
            thread=args.thread.name if args.thread else None,
        )
        self.emit(str(args.exc_value))
        if self._previous_threading_excepthook is not None:
            self._previous_threading_excepthook(args)

    def _loop_exception_handler(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        exc = context.get("exception")
        message = str(exc) if exc is not None else str(context.get("message", ""))
        self.logger.error(
            "Unhandled task exception detected",
            error=message,
            error_type=type(exc).__name__ if exc is not None else None,
        )
        self.emit(message)
        if self._previous_loop_handler is not None:
            self._previous_loop_handler(loop, context)
        else:
            loop.default_exception_handler(context)
