"""Render and apply the result table DDL together with its grants."""
from __future__ import annotations

from typing import Iterable, List

from sqlalchemy import text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Dialect
from sqlalchemy.schema import CreateTable

from db.base import metadata
from db.grants import DEFAULT_GRANTS, AccessGrant
from db.poco.parallel_benchmark_result import parallel_benchmark_result

DIALECTS = {
    "postgresql": postgresql.dialect,
    "sqlite": sqlite.dialect,
}


def supports_grants(dialect: Dialect) -> bool:
    return dialect.name == "postgresql"


def schema_statements(dialect: Dialect, grants: Iterable[AccessGrant] = DEFAULT_GRANTS) -> List[str]:
    statements = [str(CreateTable(parallel_benchmark_result).compile(dialect=dialect)).strip()]
    if supports_grants(dialect):
        statements.extend(g.to_sql(dialect) for g in grants)
    return statements


def render_schema_sql(dialect_name: str = "postgresql") -> str:
    """Return the CREATE TABLE and GRANT statements as one SQL script."""
    try:
        dialect = DIALECTS[dialect_name]()
    except KeyError:
        raise ValueError(f"Unsupported dialect '{dialect_name}'. Allowed: {sorted(DIALECTS)}") from None
    return "\n\n".join(s + ";" for s in schema_statements(dialect)) + "\n"


def create_schema(conn: Connection, grants: Iterable[AccessGrant] = DEFAULT_GRANTS) -> None:
    """Create the table if missing and apply grants where the engine has roles.

    Used by tests and local setups; deployed databases go through Alembic.
    """
    metadata.create_all(conn, tables=[parallel_benchmark_result])
    if supports_grants(conn.dialect):
        for grant in grants:
            conn.execute(text(grant.to_sql(conn.dialect)))
