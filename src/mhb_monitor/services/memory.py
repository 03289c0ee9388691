"""Memory usage probe backed by psutil."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import psutil


@dataclass(frozen=True)
class MemoryUsage:
    """Point-in-time memory figures used by the memory health checks."""

    rss: int
    heap_used: int
    heap_total: int

    @property
    def percent(self) -> float:
        if self.heap_total <= 0:
            return 0.0
        return (self.heap_used / self.heap_total) * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "rss": self.rss,
            "heap_used": self.heap_used,
            "heap_total": self.heap_total,
            "usage_percent": self.percent,
        }


MemoryProbe = Callable[[], MemoryUsage]


def read_memory_usage() -> MemoryUsage:
    """Read host memory usage and the resident size of this process.

    ``heap_used`` is the host's used memory (total minus available) and
    ``heap_total`` its total memory.
    """
    virtual = psutil.virtual_memory()
    rss = psutil.Process().memory_info().rss
    return MemoryUsage(
        rss=rss,
        heap_used=virtual.total - virtual.available,
        heap_total=virtual.total,
    )
