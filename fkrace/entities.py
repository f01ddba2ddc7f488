from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from fkrace.stats import OperationStats


class RemainderPolicy(str, Enum):
    DROP = "drop"
    LAST_WORKER = "last_worker"


@dataclass
class ReproConfig:
    dsn: str
    parents: int
    children: int
    concurrency: int
    max_attempts: int
    max_conns: int
    sequential: bool
    remainder: RemainderPolicy
    skip_schema: bool


@dataclass
class Dependencies:
    psycopg: Any
    pool_cls: Any


@dataclass(frozen=True)
class Statement:
    sql: str
    params: tuple = ()


AttemptGenerator = Callable[[int], Statement]
Executor = Callable[[Statement], bool]


class Outcome(str, Enum):
    SUCCEEDED = "succeeded"
    GAVE_UP = "gave_up"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Partition:
    worker_id: int
    start: int
    stop: int

    @property
    def size(self) -> int:
        return self.stop - self.start

    def indices(self) -> range:
        return range(self.start, self.stop)


@dataclass(frozen=True)
class IndexResult:
    index: int
    outcome: Outcome
    attempts: int


@dataclass
class WorkerResult:
    partition: Partition
    stats: OperationStats
    results: list[IndexResult] = field(default_factory=list)
    rounds: int = 0

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for item in self.results if item.outcome is outcome)

    @property
    def succeeded(self) -> int:
        return self._count(Outcome.SUCCEEDED)

    @property
    def gave_up(self) -> int:
        return self._count(Outcome.GAVE_UP)

    @property
    def cancelled(self) -> int:
        return self._count(Outcome.CANCELLED)

    @property
    def attempts(self) -> int:
        return sum(item.attempts for item in self.results)


@dataclass
class BatchSpec:
    name: str
    total: int
    generate: AttemptGenerator
    concurrency: int
    max_attempts: int = 0
    remainder: RemainderPolicy = RemainderPolicy.DROP


@dataclass
class BatchResult:
    name: str
    total: int
    stats: OperationStats
    workers: list[WorkerResult] = field(default_factory=list)
    uncovered: int = 0

    @property
    def succeeded(self) -> int:
        return sum(item.succeeded for item in self.workers)

    @property
    def gave_up(self) -> int:
        return sum(item.gave_up for item in self.workers)

    @property
    def cancelled(self) -> int:
        return sum(item.cancelled for item in self.workers)

    @property
    def attempts(self) -> int:
        return sum(item.attempts for item in self.workers)

    @property
    def complete(self) -> bool:
        return self.uncovered == 0 and self.succeeded == self.total
