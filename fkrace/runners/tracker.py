import threading

from fkrace.entities import (
    AttemptGenerator,
    Executor,
    IndexResult,
    Outcome,
    Partition,
    WorkerResult,
)
from fkrace.stats import OperationStats


class CompletionTracker:
    """Retries one partition until every index succeeded, gave up or was cancelled."""

    def __init__(
        self,
        partition: Partition,
        generate: AttemptGenerator,
        execute: Executor,
        max_attempts: int = 0,
        cancel: threading.Event | None = None,
        stats: OperationStats | None = None,
    ) -> None:
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {max_attempts}")
        self.partition = partition
        self.generate = generate
        self.execute = execute
        self.max_attempts = max_attempts
        self.cancel = cancel
        self.stats = stats if stats is not None else OperationStats("worker")

    def run(self) -> WorkerResult:
        size = self.partition.size
        completed = [False] * size
        attempts = [0] * size
        outcomes: list[Outcome | None] = [None] * size
        pending = size
        rounds = 0

        while pending > 0:
            rounds += 1
            for slot in range(size):
                if completed[slot]:
                    continue
                if self._cancelled():
                    break
                if self.max_attempts and attempts[slot] >= self.max_attempts:
                    completed[slot] = True
                    outcomes[slot] = Outcome.GAVE_UP
                    pending -= 1
                    continue

                attempts[slot] += 1
                statement = self.generate(self.partition.start + slot)
                if self.stats.time(lambda: self.execute(statement)):
                    completed[slot] = True
                    outcomes[slot] = Outcome.SUCCEEDED
                    pending -= 1

            if pending > 0 and self._cancelled():
                break

        results = [
            IndexResult(
                index=self.partition.start + slot,
                outcome=outcomes[slot] or self._unfinished_outcome(attempts[slot]),
                attempts=attempts[slot],
            )
            for slot in range(size)
        ]
        return WorkerResult(
            partition=self.partition,
            stats=self.stats,
            results=results,
            rounds=rounds,
        )

    def _unfinished_outcome(self, attempts: int) -> Outcome:
        # A spent budget is a give-up even if cancel landed before the next round.
        if self.max_attempts and attempts >= self.max_attempts:
            return Outcome.GAVE_UP
        return Outcome.CANCELLED

    def _cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()
