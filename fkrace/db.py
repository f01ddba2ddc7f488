from typing import Any

from fkrace.entities import Dependencies, ReproConfig, Statement
from fkrace.statements import CREATE_CHILD_SQL, CREATE_PARENT_SQL, DROP_SQL


class DatabaseManager:
    def __init__(self, config: ReproConfig, deps: Dependencies) -> None:
        self.config = config
        self.deps = deps

    def prepare_schema(self) -> None:
        with self.deps.psycopg.connect(self.config.dsn) as conn:
            with conn.cursor() as cur:
                for drop_sql in DROP_SQL:
                    cur.execute(drop_sql)
                cur.execute(CREATE_PARENT_SQL)
                cur.execute(CREATE_CHILD_SQL)
            conn.commit()

    def open_pool(self) -> Any:
        pool = self.deps.pool_cls(
            self.config.dsn,
            min_size=1,
            max_size=self.config.max_conns,
            open=False,
        )
        pool.open(wait=True)
        return pool

    def fetch_row_counts(self) -> tuple[int, int]:
        with self.deps.psycopg.connect(self.config.dsn) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT count(*) FROM p;")
                parents = int(cur.fetchone()[0])
                cur.execute("SELECT count(*) FROM c;")
                children = int(cur.fetchone()[0])
        return parents, children


class PoolExecutor:
    def __init__(self, pool: Any, psycopg: Any) -> None:
        self.pool = pool
        self.error_cls = psycopg.Error

    def __call__(self, statement: Statement) -> bool:
        try:
            # The pool commits on clean exit and rolls back on error.
            with self.pool.connection() as conn:
                conn.execute(statement.sql, statement.params)
        except self.error_cls:
            return False
        return True
