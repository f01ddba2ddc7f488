import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from fkrace.entities import (
    BatchResult,
    BatchSpec,
    Executor,
    Partition,
    RemainderPolicy,
    WorkerResult,
)
from fkrace.runners.tracker import CompletionTracker
from fkrace.stats import AggregateStats, OperationStats


class LinkedEvent(threading.Event):
    """Set on its own or whenever the parent event is set."""

    def __init__(self, parent: threading.Event | None = None) -> None:
        super().__init__()
        self.parent = parent

    def is_set(self) -> bool:
        return super().is_set() or (self.parent is not None and self.parent.is_set())


def split_partitions(
    total: int,
    concurrency: int,
    remainder: RemainderPolicy = RemainderPolicy.DROP,
) -> list[Partition]:
    """Split ``[0, total)`` into ``concurrency`` contiguous ranges of ``total // concurrency``."""
    if total < 0:
        raise ValueError(f"total must be >= 0, got {total}")
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    if total == 0:
        return []

    size = total // concurrency
    partitions = [
        Partition(worker_id=k, start=k * size, stop=(k + 1) * size)
        for k in range(concurrency)
    ]
    if remainder is RemainderPolicy.LAST_WORKER:
        last = partitions[-1]
        partitions[-1] = Partition(worker_id=last.worker_id, start=last.start, stop=total)
    return partitions


class BatchCoordinator:
    def __init__(
        self,
        spec: BatchSpec,
        execute: Executor,
        cancel: threading.Event | None = None,
        on_worker_done: Callable[[str, WorkerResult], None] | None = None,
    ) -> None:
        self.spec = spec
        self.execute = execute
        self.cancel = cancel
        self.on_worker_done = on_worker_done

    def run(self) -> BatchResult:
        partitions = split_partitions(
            self.spec.total, self.spec.concurrency, self.spec.remainder
        )
        aggregate = AggregateStats(self.spec.name)
        covered = sum(partition.size for partition in partitions)
        workers: list[WorkerResult] = []

        if partitions:
            stop = LinkedEvent(self.cancel)
            with ThreadPoolExecutor(
                max_workers=len(partitions),
                thread_name_prefix=self.spec.name.replace(" ", "_"),
            ) as pool:
                futures = [
                    pool.submit(self._run_worker, partition, aggregate, stop)
                    for partition in partitions
                ]
                # Leaving the pool block joins every worker before any error is re-raised.
            for future in futures:
                workers.append(future.result())

        return BatchResult(
            name=self.spec.name,
            total=self.spec.total,
            stats=aggregate.snapshot(),
            workers=workers,
            uncovered=self.spec.total - covered,
        )

    def _run_worker(
        self, partition: Partition, aggregate: AggregateStats, stop: LinkedEvent
    ) -> WorkerResult:
        tracker = CompletionTracker(
            partition=partition,
            generate=self.spec.generate,
            execute=self.execute,
            max_attempts=self.spec.max_attempts,
            cancel=stop,
            stats=OperationStats(self.spec.name),
        )
        try:
            worker_result = tracker.run()
        except Exception:
            # Siblings may be retrying forever; stop them so the error can surface.
            stop.set()
            raise
        finally:
            aggregate.merge(tracker.stats)
        if self.on_worker_done is not None:
            self.on_worker_done(self.spec.name, worker_result)
        return worker_result


class WorkloadRunner:
    """Runs the parent and child batches, optionally behind a full barrier."""

    def __init__(
        self,
        parent: BatchSpec,
        child: BatchSpec,
        execute: Executor,
        sequential: bool,
        cancel: threading.Event | None = None,
        on_worker_done: Callable[[str, WorkerResult], None] | None = None,
    ) -> None:
        self.parent = parent
        self.child = child
        self.execute = execute
        self.sequential = sequential
        self.cancel = cancel
        self.on_worker_done = on_worker_done

    def run(self) -> tuple[BatchResult, BatchResult]:
        stop = LinkedEvent(self.cancel)
        if self.sequential:
            parent_result = self._run_batch(self.parent, stop)
            child_result = self._run_batch(self.child, stop)
            return parent_result, child_result

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="batch") as pool:
            parent_future = pool.submit(self._run_batch, self.parent, stop)
            child_future = pool.submit(self._run_batch, self.child, stop)
        return parent_future.result(), child_future.result()

    def _run_batch(self, spec: BatchSpec, stop: LinkedEvent) -> BatchResult:
        coordinator = BatchCoordinator(
            spec=spec,
            execute=self.execute,
            cancel=stop,
            on_worker_done=self.on_worker_done,
        )
        try:
            return coordinator.run()
        except Exception:
            # Children cannot succeed once the parent batch has crashed.
            stop.set()
            raise
