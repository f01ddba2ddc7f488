import signal
import threading

from fkrace.cli import CLI
from fkrace.db import DatabaseManager, PoolExecutor
from fkrace.entities import BatchSpec, ReproConfig
from fkrace.report import ConsoleReporter
from fkrace.runners.batch import WorkloadRunner
from fkrace.statements import child_insert, parent_insert
from fkrace.utils import DependencyProvider


class App:
    def __init__(self, config: ReproConfig) -> None:
        self.config = config
        self.deps = DependencyProvider().load()
        self.db = DatabaseManager(config, self.deps)
        self.reporter = ConsoleReporter(config)
        self.cancel = threading.Event()

    def build_specs(self) -> tuple[BatchSpec, BatchSpec]:
        parent = BatchSpec(
            name="parent inserts",
            total=self.config.parents,
            generate=parent_insert,
            concurrency=self.config.concurrency,
            max_attempts=self.config.max_attempts,
            remainder=self.config.remainder,
        )
        child = BatchSpec(
            name="child inserts",
            total=self.config.children,
            generate=child_insert,
            concurrency=self.config.concurrency,
            max_attempts=self.config.max_attempts,
            remainder=self.config.remainder,
        )
        return parent, child

    def run(self) -> int:
        self.reporter.print_config()
        if not self.config.skip_schema:
            self.db.prepare_schema()

        pool = self.db.open_pool()
        try:
            parent, child = self.build_specs()
            runner = WorkloadRunner(
                parent=parent,
                child=child,
                execute=PoolExecutor(pool, self.deps.psycopg),
                sequential=self.config.sequential,
                cancel=self.cancel,
                on_worker_done=self.reporter.print_worker,
            )
            print("starting inserts...")
            results = runner.run()
        finally:
            pool.close()

        print()
        self.reporter.print_stats(list(results))
        for result in results:
            self.reporter.print_outcome(result)
        self.reporter.print_row_counts(*self.db.fetch_row_counts())
        print("done")
        return 0 if all(result.complete for result in results) else 1

    def install_signal_handlers(self) -> None:
        def handle_signal(signum, _frame):
            print(f"\n[ctrl] received signal {signum}; cancelling workers...")
            # A second Ctrl-C aborts even if an insert is stuck.
            signal.signal(signal.SIGINT, signal.default_int_handler)
            self.cancel.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, handle_signal)


def main() -> None:
    config = CLI.parse_config()
    app = App(config)
    app.install_signal_handlers()
    raise SystemExit(app.run())


if __name__ == "__main__":
    main()
