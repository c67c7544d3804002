from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.engine import MappingResult
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from config import DEFAULT_PRINCIPAL
from db.db_conn import UNAVAILABLE_ERRORS
from db.errors import StorageUnavailableError, ValidationError
from db.grants import Authorizer
from db.poco.parallel_benchmark_result import (
    COLUMN_NAMES,
    BenchmarkResultRecord,
    check_column_value,
    parallel_benchmark_result,
    record_from_row,
)

logger = logging.getLogger("benchmarks.results")

RecordLike = Union[BenchmarkResultRecord, Mapping[str, Any]]


def _as_record(record: RecordLike) -> BenchmarkResultRecord:
    if isinstance(record, BenchmarkResultRecord):
        return record.validate()
    return BenchmarkResultRecord.from_mapping(record)


class BenchmarkResultsRepo:
    """Append/query parallel_benchmark_result rows on behalf of one principal.

    Every operation is checked against the static grants first. Rows have no
    key, so reads and updates address them through column filters only.
    """

    def __init__(self, principal: str = DEFAULT_PRINCIPAL, authorizer: Optional[Authorizer] = None) -> None:
        self.principal = principal
        self.authorizer = authorizer or Authorizer()

    def authorize(self, operation: str, principal: Optional[str] = None) -> bool:
        return self.authorizer.authorize(principal or self.principal, operation)

    def insert(self, session: Session, record: RecordLike) -> None:
        """Append one result row. Nothing is returned: the table has no key."""
        self.authorizer.require(self.principal, "INSERT")
        rec = _as_record(record)
        with self._storage_errors("insert"):
            session.execute(insert(parallel_benchmark_result).values(**rec.to_row()))
        logger.info(
            "Inserted result build_job_id=%s scenario=%s v%s framework=%s",
            rec.build_job_id,
            rec.scenario_name,
            rec.scenario_version,
            rec.framework_version,
        )

    def insert_many(self, session: Session, records: Iterable[RecordLike]) -> int:
        """Append several rows; all are validated before any is written."""
        self.authorizer.require(self.principal, "INSERT")
        rows = [_as_record(r).to_row() for r in records]
        if not rows:
            return 0
        with self._storage_errors("insert"):
            session.execute(insert(parallel_benchmark_result), rows)
        logger.info("Inserted %d results", len(rows))
        return len(rows)

    def query(
        self,
        session: Session,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        order_by: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        **criteria: Any,
    ) -> Iterator[BenchmarkResultRecord]:
        """Lazily yield records matching equality filters on any columns.

        A list/tuple/set value matches any of its members and ``None`` matches
        NULL. Row order is unspecified unless ``order_by`` names columns. The
        session must stay open until the iterator is exhausted.
        """
        self.authorizer.require(self.principal, "SELECT")
        conditions = self._conditions({**(filters or {}), **criteria})
        stmt = select(parallel_benchmark_result).where(*conditions)
        for name in order_by or ():
            stmt = stmt.order_by(self._column(name))
        if limit is not None:
            if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
                raise ValidationError("limit", f"limit must be a non-negative integer, got {limit!r}")
            stmt = stmt.limit(limit)
        with self._storage_errors("query"):
            result = session.execute(stmt).mappings()
        return self._iter_records(result)

    def list_by_build(self, session: Session, build_job_id: str) -> List[BenchmarkResultRecord]:
        return list(self.query(session, build_job_id=build_job_id, order_by=("scenario_name", "scenario_version")))

    def count(self, session: Session, filters: Optional[Mapping[str, Any]] = None, **criteria: Any) -> int:
        self.authorizer.require(self.principal, "SELECT")
        conditions = self._conditions({**(filters or {}), **criteria})
        stmt = select(func.count()).select_from(parallel_benchmark_result).where(*conditions)
        with self._storage_errors("count"):
            return int(session.execute(stmt).scalar_one())

    def update(self, session: Session, values: Mapping[str, Any], filters: Mapping[str, Any]) -> int:
        """Set ``values`` on every row matching ``filters``; returns the row count.

        An empty filter is refused: with no key, it would rewrite the whole table.
        """
        self.authorizer.require(self.principal, "UPDATE")
        if not filters:
            raise ValidationError(None, "refusing unconditional update; pass a non-empty filter")
        if not values:
            raise ValidationError(None, "nothing to update")
        new_values = {name: check_column_value(name, value) for name, value in values.items()}
        conditions = self._conditions(filters)
        stmt = update(parallel_benchmark_result).where(*conditions).values(**new_values)
        with self._storage_errors("update"):
            result = session.execute(stmt)
        logger.info("Updated %d results where %s set %s", result.rowcount, dict(filters), sorted(new_values))
        return int(result.rowcount)

    @staticmethod
    def _column(name: str):
        if name not in COLUMN_NAMES:
            raise ValidationError(name, f"unknown column '{name}'")
        return parallel_benchmark_result.c[name]

    def _conditions(self, filters: Mapping[str, Any]) -> List[ColumnElement]:
        conditions: List[ColumnElement] = []
        for name, value in filters.items():
            col = self._column(name)
            if value is None:
                conditions.append(col.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                members = [check_column_value(name, v) for v in value if v is not None]
                cond = col.in_(members)
                if any(v is None for v in value):
                    cond = or_(cond, col.is_(None))
                conditions.append(cond)
            else:
                conditions.append(col == check_column_value(name, value))
        return conditions

    def _iter_records(self, result: MappingResult) -> Iterator[BenchmarkResultRecord]:
        try:
            with self._storage_errors("query"):
                for row in result:
                    yield record_from_row(row)
        finally:
            result.close()

    @contextmanager
    def _storage_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except UNAVAILABLE_ERRORS as exc:
            logger.error("Storage unavailable during %s: %s", action, exc)
            raise StorageUnavailableError(f"{action} failed: {exc}") from exc
