"""Shared fixtures: an in-memory SQLite database with the result table."""
from pathlib import Path
import sys

import pytest
from sqlalchemy.pool import StaticPool

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db.db_conn import DbConn  # noqa: E402
from db.schema import create_schema  # noqa: E402


@pytest.fixture
def db():
    conn = DbConn(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with conn.engine.begin() as c:
        create_schema(c)
    yield conn
    conn.dispose()


@pytest.fixture
def session(db):
    s = db.get_session()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def sample_row():
    """The point-lookup run from the harness documentation."""
    return {
        "build_job_id": "build-123",
        "framework_version": "1.2.0",
        "scenario_name": "point-lookup",
        "scenario_version": "3",
        "query": "SELECT * FROM t WHERE id=?",
        "queries": 10000,
        "qps": 523.4,
        "min": 0.8,
        "max": 12.1,
        "avg": 1.9,
        "p50": 1.7,
        "p95": 4.2,
        "p99": 9.0,
        "std": 1.1,
        "slope": 0.02,
    }
