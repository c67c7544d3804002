from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from sqlalchemy import Column, Double, Integer, Table, Text

from db.base import metadata
from db.errors import ValidationError

TABLE_NAME = "parallel_benchmark_result"

# No primary key and no timestamp: one row per scenario run, duplicates allowed.
parallel_benchmark_result = Table(
    TABLE_NAME,
    metadata,
    Column("build_job_id", Text, nullable=False),
    Column("framework_version", Text, nullable=False),
    Column("scenario_name", Text, nullable=False),
    Column("scenario_version", Text, nullable=False),
    Column("query", Text, nullable=False),
    Column("load_phase_duration", Integer, nullable=True),
    Column("queries", Integer, nullable=False),
    Column("qps", Double, nullable=False),
    Column("min", Double, nullable=False),
    Column("max", Double, nullable=False),
    Column("avg", Double, nullable=False),
    Column("p50", Double, nullable=False),
    Column("p95", Double, nullable=False),
    Column("p99", Double, nullable=False),
    Column("std", Double, nullable=False),
    Column("slope", Double, nullable=False),
)

COLUMN_NAMES: Tuple[str, ...] = tuple(c.name for c in parallel_benchmark_result.columns)
IDENTITY_COLUMNS: Tuple[str, ...] = ("build_job_id", "scenario_name", "scenario_version", "framework_version")

TEXT_COLUMNS = frozenset(c.name for c in parallel_benchmark_result.columns if isinstance(c.type, Text))
INT_COLUMNS = frozenset(c.name for c in parallel_benchmark_result.columns if isinstance(c.type, Integer))
DOUBLE_COLUMNS = frozenset(c.name for c in parallel_benchmark_result.columns if isinstance(c.type, Double))
OPTIONAL_COLUMNS = frozenset(c.name for c in parallel_benchmark_result.columns if c.nullable)


def check_column_value(name: str, value: Any) -> Any:
    """Validate ``value`` for column ``name`` and return it normalized.

    Doubles accept ints and come back as floats; bools are rejected everywhere.
    """
    if name not in COLUMN_NAMES:
        raise ValidationError(name, f"unknown column '{name}'")
    if value is None:
        if name in OPTIONAL_COLUMNS:
            return None
        raise ValidationError(name, f"required field '{name}' is missing")
    if isinstance(value, bool):
        raise ValidationError(name, f"field '{name}' must not be a boolean")
    if name in TEXT_COLUMNS:
        if not isinstance(value, str):
            raise ValidationError(name, f"field '{name}' must be a string, got {type(value).__name__}")
        return value
    if name in INT_COLUMNS:
        if not isinstance(value, int):
            raise ValidationError(name, f"field '{name}' must be an integer, got {type(value).__name__}")
        return value
    if not isinstance(value, (int, float)):
        raise ValidationError(name, f"field '{name}' must be a number, got {type(value).__name__}")
    return float(value)


@dataclass(frozen=True, kw_only=True)
class BenchmarkResultRecord:
    """One completed benchmark scenario run, as written by the harness."""

    build_job_id: str
    framework_version: str
    scenario_name: str
    scenario_version: str
    query: str
    queries: int
    qps: float
    min: float
    max: float
    avg: float
    p50: float
    p95: float
    p99: float
    std: float
    slope: float
    load_phase_duration: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BenchmarkResultRecord":
        """Build a validated record from a dict, e.g. a harness JSON payload."""
        unknown = sorted(set(data) - set(COLUMN_NAMES))
        if unknown:
            raise ValidationError(unknown[0], f"unknown column '{unknown[0]}'")
        values = {name: check_column_value(name, data.get(name)) for name in COLUMN_NAMES}
        return cls(**values)

    def validate(self) -> "BenchmarkResultRecord":
        """Return a normalized copy; raises ValidationError on the first bad field."""
        return BenchmarkResultRecord(**{f.name: check_column_value(f.name, getattr(self, f.name)) for f in fields(self)})

    def to_row(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in COLUMN_NAMES}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def identity(self) -> Tuple[str, str, str, str]:
        return tuple(getattr(self, name) for name in IDENTITY_COLUMNS)  # type: ignore[return-value]


def record_from_row(row: Mapping[str, Any]) -> BenchmarkResultRecord:
    values: Dict[str, Any] = {name: row[name] for name in COLUMN_NAMES}
    for name in DOUBLE_COLUMNS:
        values[name] = float(values[name])
    return BenchmarkResultRecord(**values)
