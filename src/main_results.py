"""CLI: upload and inspect parallel benchmark results.

Run from project root:
    python src/main_results.py insert results.json
    python src/main_results.py list --scenario-name point-lookup
    python src/main_results.py check-grant hetzner-ci UPDATE
    python src/main_results.py schema --dialect postgresql

``insert`` accepts a JSON object or an array of objects, one per scenario
run, with the statistics already computed by the benchmark harness.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from config import configure_logging, get_db_principal, load_env_file
from db.benchmark_results_repo import BenchmarkResultsRepo
from db.db_conn import DbConn
from db.errors import BenchmarkStoreError
from db.grants import OPERATIONS, Authorizer
from db.schema import DIALECTS, render_schema_sql

logger = logging.getLogger("benchmarks.cli")

FILTER_OPTIONS = ("build_job_id", "framework_version", "scenario_name", "scenario_version")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Parallel benchmark result store")
    parser.add_argument("--echo", action="store_true", help="Enable SQLAlchemy engine echo")
    sub = parser.add_subparsers(dest="command", required=True)

    p_insert = sub.add_parser("insert", help="Insert results from a JSON file ('-' for stdin)")
    p_insert.add_argument("path", help="JSON object or array of objects")

    p_list = sub.add_parser("list", help="Print matching results as JSON lines")
    for name in FILTER_OPTIONS:
        p_list.add_argument(f"--{name.replace('_', '-')}", dest=name, default=None)
    p_list.add_argument("--limit", type=int, default=None, help="Maximum rows to print")

    p_grant = sub.add_parser("check-grant", help="Check whether a principal may run an operation")
    p_grant.add_argument("principal")
    p_grant.add_argument("operation", type=str.upper, choices=OPERATIONS)

    p_schema = sub.add_parser("schema", help="Print CREATE TABLE and GRANT statements")
    p_schema.add_argument("--dialect", default="postgresql", choices=sorted(DIALECTS))

    return parser.parse_args(argv)


def _load_payload(path: str) -> List[Dict[str, Any]]:
    raw = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError("expected a JSON object or an array of objects")
    return data


def main(argv: Optional[Sequence[str]] = None, db: Optional[DbConn] = None) -> int:
    load_env_file()
    configure_logging()
    args = parse_args(argv)

    if args.command == "check-grant":
        allowed = Authorizer().authorize(args.principal, args.operation)
        print("allow" if allowed else "deny")
        return 0 if allowed else 1

    if args.command == "schema":
        sys.stdout.write(render_schema_sql(args.dialect))
        return 0

    try:
        db = db or DbConn(echo=args.echo)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    repo = BenchmarkResultsRepo(principal=get_db_principal())
    try:
        if args.command == "insert":
            payload = _load_payload(args.path)
            with db.session_scope() as session:
                n = repo.insert_many(session, payload)
            print(f"Inserted {n} result(s)")
            return 0

        filters = {name: getattr(args, name) for name in FILTER_OPTIONS if getattr(args, name) is not None}
        with db.session_scope() as session:
            for record in repo.query(session, filters, limit=args.limit):
                print(json.dumps(record.to_dict(), sort_keys=True))
        return 0
    except (BenchmarkStoreError, ValueError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
