from __future__ import annotations

import threading
from collections import Counter
from contextlib import contextmanager
from types import SimpleNamespace
from typing import Any, Callable, Iterator

import pytest

from fkrace.entities import Dependencies, Statement


class RecordingExecutor:
    """Thread-safe executor stub that fails each statement ``fail_times`` times."""

    def __init__(
        self,
        fail_times: int = 0,
        always_fail: bool = False,
        on_call: Callable[[Statement, int], None] | None = None,
    ) -> None:
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.on_call = on_call
        self.calls: list[Statement] = []
        self.failures: Counter[Statement] = Counter()
        self._lock = threading.Lock()

    def __call__(self, statement: Statement) -> bool:
        with self._lock:
            self.calls.append(statement)
            call_no = len(self.calls)
            if self.always_fail:
                ok = False
            elif self.failures[statement] < self.fail_times:
                self.failures[statement] += 1
                ok = False
            else:
                ok = True
        if self.on_call is not None:
            self.on_call(statement, call_no)
        return ok


class FakeDbError(Exception):
    pass


class FakeCursor:
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db
        self._last: tuple | None = None

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def execute(self, sql: str, params: tuple = ()) -> None:
        self.db.executed.append((sql, params))
        if sql.startswith("SELECT count(*) FROM p"):
            self._last = (self.db.parent_rows,)
        elif sql.startswith("SELECT count(*) FROM c"):
            self._last = (self.db.child_rows,)

    def fetchone(self) -> tuple | None:
        return self._last


class FakeConnection:
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db
        self.committed = False

    def __enter__(self) -> FakeConnection:
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def cursor(self) -> FakeCursor:
        return FakeCursor(self.db)

    def commit(self) -> None:
        self.committed = True
        self.db.commits += 1

    def execute(self, sql: str, params: tuple = ()) -> None:
        with self.db.lock:
            self.db.pool_executed.append((sql, params))
            if self.db.fail_sql and sql.startswith(self.db.fail_sql):
                raise FakeDbError("insert or update violates foreign key constraint")
            if sql.startswith("INSERT INTO p"):
                self.db.parent_rows += 1
            elif sql.startswith("INSERT INTO c"):
                self.db.child_rows += 1


class FakePool:
    def __init__(self, db: FakeDatabase, dsn: str, **kwargs: Any) -> None:
        self.db = db
        self.dsn = dsn
        self.kwargs = kwargs
        self.opened = False
        self.closed = False
        db.pools.append(self)

    def open(self, wait: bool = False) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    @contextmanager
    def connection(self) -> Iterator[FakeConnection]:
        yield FakeConnection(self.db)


class FakeDatabase:
    """In-memory stand-in for the psycopg module and the pool class."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.executed: list[tuple[str, tuple]] = []
        self.pool_executed: list[tuple[str, tuple]] = []
        self.pools: list[FakePool] = []
        self.connect_dsns: list[str] = []
        self.commits = 0
        self.parent_rows = 0
        self.child_rows = 0
        self.fail_sql: str | None = None

    def connect(self, dsn: str) -> FakeConnection:
        self.connect_dsns.append(dsn)
        return FakeConnection(self)

    def pool_cls(self, dsn: str, **kwargs: Any) -> FakePool:
        return FakePool(self, dsn, **kwargs)

    def dependencies(self) -> Dependencies:
        psycopg = SimpleNamespace(connect=self.connect, Error=FakeDbError)
        return Dependencies(psycopg=psycopg, pool_cls=self.pool_cls)


@pytest.fixture
def recording_executor() -> type[RecordingExecutor]:
    return RecordingExecutor


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()
