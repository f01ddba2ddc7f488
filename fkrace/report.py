import threading

from fkrace.entities import BatchResult, ReproConfig, WorkerResult


def summary_lines(results: list[BatchResult]) -> list[str]:
    lines = [str(result.stats) for result in results]
    return [line for line in lines if line]


class ConsoleReporter:
    def __init__(self, config: ReproConfig) -> None:
        self.config = config
        # Worker callbacks arrive from pool threads.
        self._lock = threading.Lock()

    def print_config(self) -> None:
        attempts = self.config.max_attempts or "unbounded"
        print("=== Configuration ===")
        print(f"Parent inserts: {self.config.parents}")
        print(f"Child inserts: {self.config.children}")
        print(f"Workers per table: {self.config.concurrency}")
        print(f"Max attempts: {attempts}")
        print(f"Max connections: {self.config.max_conns}")
        print(f"Mode: {'sequential' if self.config.sequential else 'concurrent'}")
        print(f"Remainder: {self.config.remainder.value}")
        print()

    def print_worker(self, name: str, result: WorkerResult) -> None:
        partition = result.partition
        line = (
            f"[{name}] worker={partition.worker_id} "
            f"indices={partition.start}..{partition.stop} "
            f"ok={result.succeeded} "
            f"gave_up={result.gave_up} "
            f"cancelled={result.cancelled} "
            f"attempts={result.attempts} "
            f"rounds={result.rounds}"
        )
        with self._lock:
            print(line)

    def print_stats(self, results: list[BatchResult]) -> None:
        for line in summary_lines(results):
            print(line)

    def print_outcome(self, result: BatchResult) -> None:
        status = "OK" if result.complete else "INCOMPLETE"
        print(
            f"{result.name}: {status} "
            f"succeeded={result.succeeded}/{result.total} "
            f"attempts={result.attempts}"
        )
        if result.gave_up:
            print(
                f"  warning: {result.gave_up} inserts gave up after "
                f"{self.config.max_attempts} attempts"
            )
        if result.cancelled:
            print(f"  warning: {result.cancelled} inserts cancelled before completion")
        if result.uncovered:
            print(
                f"  warning: {result.uncovered} trailing inserts were not assigned "
                f"to any worker (use --assign-remainder)"
            )

    @staticmethod
    def print_row_counts(parents: int, children: int) -> None:
        print("=== Final Table Metrics ===")
        print(f"Rows in p: {parents}")
        print(f"Rows in c: {children}")
