from fkrace.entities import Dependencies


class DependencyProvider:
    def load(self) -> Dependencies:
        try:
            import psycopg
        except ImportError as exc:
            raise SystemExit(
                "psycopg is not installed. Install with: pip install 'psycopg[binary]'"
            ) from exc

        try:
            from psycopg_pool import ConnectionPool
        except ImportError as exc:
            raise SystemExit(
                "psycopg_pool is not installed. Install with: pip install 'psycopg[pool]'"
            ) from exc

        return Dependencies(psycopg=psycopg, pool_cls=ConnectionPool)
