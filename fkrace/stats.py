import threading
import time
from typing import Any, Callable

NS_PER_MS = 1_000_000


class OperationStats:
    """Per-worker timing accumulator; not thread-safe, merge it into an aggregate."""

    def __init__(self, name: str, count: int = 0, total_ns: int = 0, max_ns: int = 0) -> None:
        self.name = name
        self.count = count
        self.total_ns = total_ns
        self.max_ns = max_ns

    def time(self, fn: Callable[[], Any]) -> Any:
        started = time.perf_counter_ns()
        try:
            return fn()
        finally:
            self._record(time.perf_counter_ns() - started)

    def merge(self, other: "OperationStats") -> None:
        self.count += other.count
        self.total_ns += other.total_ns
        self.max_ns = max(self.max_ns, other.max_ns)

    @property
    def avg_ms(self) -> int:
        if self.count == 0:
            return 0
        return (self.total_ns // self.count) // NS_PER_MS

    @property
    def max_ms(self) -> int:
        return self.max_ns // NS_PER_MS

    def _record(self, elapsed_ns: int) -> None:
        self.count += 1
        self.total_ns += elapsed_ns
        self.max_ns = max(self.max_ns, elapsed_ns)

    def __str__(self) -> str:
        if self.count == 0:
            return ""
        return (
            f"{self.name}: count={self.count}, "
            f"avg_time={self.avg_ms}ms, max_time={self.max_ms}ms"
        )

    def __repr__(self) -> str:
        return (
            f"OperationStats(name={self.name!r}, count={self.count}, "
            f"total_ns={self.total_ns}, max_ns={self.max_ns})"
        )


class AggregateStats(OperationStats):
    """Per-batch accumulator shared by all workers; only fed through ``merge``."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._lock = threading.Lock()

    def time(self, fn: Callable[[], Any]) -> Any:
        raise TypeError(
            f"{self.name}: aggregate stats only accept merged worker stats"
        )

    def merge(self, other: OperationStats) -> None:
        with self._lock:
            super().merge(other)

    def snapshot(self) -> OperationStats:
        with self._lock:
            return OperationStats(self.name, self.count, self.total_ns, self.max_ns)
