"""In-process store of recent request performance samples."""

from collections.abc import Iterator

from ..models.healing import PerformanceSample


def _last(
    samples: list[PerformanceSample], limit: int | None
) -> list[PerformanceSample]:
    if limit is None:
        return samples
    if limit <= 0:
        return []
    return samples[-limit:]


class PerformanceMetrics:
    """Append-only sequence of request samples, trimmed by maintenance jobs.

    Health checks read only a recent window; repairs and the periodic
    cleanup trim the history back to its most recent entries.
    """

    def __init__(self) -> None:
        self._samples: list[PerformanceSample] = []

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[PerformanceSample]:
        return iter(list(self._samples))

    def record(
        self, endpoint: str, response_time_ms: float, status_code: int
    ) -> PerformanceSample:
        """Append a sample for a completed request."""
        sample = PerformanceSample(
            endpoint=endpoint,
            response_time_ms=response_time_ms,
            status_code=status_code,
        )
        self._samples.append(sample)
        return sample

    def recent(self, count: int) -> list[PerformanceSample]:
        """Return the most recent ``count`` samples, oldest first."""
        return _last(self._samples, count)

    def errors(self, limit: int | None = None) -> list[PerformanceSample]:
        """Return samples with status >= 400, optionally only the last ``limit``."""
        errors = [s for s in self._samples if s.is_error]
        return _last(errors, limit)

    def server_errors(self, limit: int | None = None) -> list[PerformanceSample]:
        """Return samples with status >= 500, optionally only the last ``limit``."""
        errors = [s for s in self._samples if s.is_server_error]
        return _last(errors, limit)

    def trim(self, keep: int) -> int:
        """Keep only the most recent ``keep`` samples.

        Returns:
            int: Number of samples removed
        """
        excess = len(self._samples) - max(keep, 0)
        if excess <= 0:
            return 0
        del self._samples[:excess]
        return excess
