import argparse
import os

from dotenv import load_dotenv

from fkrace.entities import RemainderPolicy, ReproConfig

load_dotenv()

DEFAULT_DSN = "postgresql://root@127.0.0.1:26257/defaultdb?sslmode=disable"


class CLI:
    @staticmethod
    def parse_config(argv: list[str] | None = None) -> ReproConfig:
        parser = argparse.ArgumentParser(
            description=(
                "Reproduce parent/child insert races under a foreign key with "
                "ON DELETE CASCADE: insert N parents and N children concurrently, "
                "retrying failed inserts until they succeed."
            )
        )
        parser.add_argument(
            "inserts",
            nargs="?",
            type=int,
            default=500,
            help="Number of inserts per table (default 500).",
        )
        parser.add_argument(
            "--dsn",
            default=os.getenv("PG_DSN") or DEFAULT_DSN,
            help="PostgreSQL/CockroachDB DSN (or set PG_DSN env variable).",
        )
        parser.add_argument(
            "--parents",
            type=int,
            default=None,
            help="Parent inserts (overrides the positional count).",
        )
        parser.add_argument(
            "--children",
            type=int,
            default=None,
            help="Child inserts (overrides the positional count).",
        )
        parser.add_argument(
            "--concurrency",
            type=int,
            default=4,
            help="Workers per table.",
        )
        parser.add_argument(
            "--max-attempts",
            type=int,
            default=0,
            help="Attempts per insert before giving up (0 retries forever).",
        )
        parser.add_argument(
            "--max-conns",
            type=int,
            default=8,
            help="Connection pool size shared by both tables.",
        )
        parser.add_argument(
            "--sequential",
            action="store_true",
            help="Insert all parents before starting child inserts.",
        )
        parser.add_argument(
            "--assign-remainder",
            action="store_true",
            help=(
                "Give the inserts left over by an uneven split to the last worker "
                "(default skips them)."
            ),
        )
        parser.add_argument(
            "--skip-schema",
            action="store_true",
            help="Reuse existing p/c tables instead of DROP + CREATE.",
        )
        args = parser.parse_args(argv)
        CLI._validate(parser, args)
        return ReproConfig(
            dsn=args.dsn,
            parents=args.inserts if args.parents is None else args.parents,
            children=args.inserts if args.children is None else args.children,
            concurrency=args.concurrency,
            max_attempts=args.max_attempts,
            max_conns=args.max_conns,
            sequential=args.sequential,
            remainder=(
                RemainderPolicy.LAST_WORKER
                if args.assign_remainder
                else RemainderPolicy.DROP
            ),
            skip_schema=args.skip_schema,
        )

    @staticmethod
    def _validate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
        if not args.dsn:
            parser.error("You must pass --dsn or set PG_DSN.")
        if args.inserts < 0:
            parser.error("inserts must be >= 0.")
        if args.parents is not None and args.parents < 0:
            parser.error("--parents must be >= 0.")
        if args.children is not None and args.children < 0:
            parser.error("--children must be >= 0.")
        if args.concurrency < 1:
            parser.error("--concurrency must be > 0.")
        if args.max_attempts < 0:
            parser.error("--max-attempts must be >= 0.")
        if args.max_conns < 1:
            parser.error("--max-conns must be > 0.")
