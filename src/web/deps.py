"""Shared FastAPI dependencies (DB sessions, result repository)."""
from __future__ import annotations

from typing import Generator, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from config import get_db_principal, load_env_file
from db.benchmark_results_repo import BenchmarkResultsRepo
from db.db_conn import DbConn

# Load environment variables so DbConn can read DB settings.
load_env_file()

_db_conn: Optional[DbConn] = None


def get_db() -> Generator[Session, None, None]:
    """Provide a SQLAlchemy session per-request (lazy init)."""
    global _db_conn

    if _db_conn is None:
        try:
            _db_conn = DbConn()
        except ValueError as exc:
            raise HTTPException(status_code=503, detail=str(exc))

    session = _db_conn.get_session()
    try:
        yield session
    finally:
        session.close()


def get_results_repo() -> BenchmarkResultsRepo:
    """Repository acting as the configured database principal."""
    return BenchmarkResultsRepo(principal=get_db_principal())
