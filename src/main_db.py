"""CLI: Test benchmark result database connectivity.

Reads configuration from resources/.env via config.load_env_file().
Performs a simple SELECT 1 using SQLAlchemy, prints the current Alembic
revision from alembic_version table if available, and reports which
operations the configured principal is granted on parallel_benchmark_result.
"""
from __future__ import annotations

import argparse
from typing import Optional, Sequence

from config import configure_logging, get_database_url, get_db_principal, load_env_file
from db.db_conn import DbConn
from db.grants import OPERATIONS, Authorizer


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Test DB connection")
    parser.add_argument("--echo", action="store_true", help="Enable SQLAlchemy engine echo")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_env_file()
    logger = configure_logging()

    url = get_database_url()
    if not url:
        logger.error("DATABASE_URL not set or incomplete DB_* variables. Check resources/.env.")
        return 2

    args = parse_args(argv)
    try:
        db = DbConn(db_url=url, echo=args.echo)
    except Exception as exc:
        logger.error("Failed to configure engine: %s", exc)
        return 2

    ok = db.test_connection()
    print(f"Connection test: {'OK' if ok else 'FAILED'}")
    if not ok:
        return 1

    rev = db.get_alembic_revision()
    if rev:
        print(f"Alembic revision: {rev}")
    else:
        print("Alembic revision: not found (no alembic_version table)")

    principal = get_db_principal()
    authorizer = Authorizer()
    granted = [op for op in OPERATIONS if authorizer.authorize(principal, op)]
    print(f"Principal {principal}: {', '.join(granted) if granted else 'no grants'}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
