from __future__ import annotations

from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from db.benchmark_results_repo import BenchmarkResultsRepo
from db.db_conn import UNAVAILABLE_ERRORS
from db.errors import AuthorizationError, BenchmarkStoreError, StorageUnavailableError, ValidationError
from db.poco.parallel_benchmark_result import BenchmarkResultRecord
from web.deps import get_db, get_results_repo

router = APIRouter(prefix="/results", tags=["results"])


class BenchmarkResult(BaseModel):
    # No coercion: "10000" or true must not pass as numbers.
    model_config = ConfigDict(strict=True)

    build_job_id: str
    framework_version: str
    scenario_name: str
    scenario_version: str
    query: str
    load_phase_duration: Optional[int] = None
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


class UpdateResultsRequest(BaseModel):
    values: Dict[str, Any]
    filter: Dict[str, Any]


class UpdateResultsResponse(BaseModel):
    updated: int


def _to_schema(record: BenchmarkResultRecord) -> BenchmarkResult:
    return BenchmarkResult(**record.to_dict())


def _raise_http(exc: Exception) -> NoReturn:
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, AuthorizationError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("", response_model=List[BenchmarkResult])
def list_results(
    build_job_id: Optional[str] = None,
    framework_version: Optional[str] = None,
    scenario_name: Optional[str] = None,
    scenario_version: Optional[str] = None,
    limit: int = Query(default=1000, ge=1),
    session: Session = Depends(get_db),
    repo: BenchmarkResultsRepo = Depends(get_results_repo),
) -> List[BenchmarkResult]:
    """List results matching the given identity columns, in no particular order."""
    filters = {
        "build_job_id": build_job_id,
        "framework_version": framework_version,
        "scenario_name": scenario_name,
        "scenario_version": scenario_version,
    }
    try:
        records = repo.query(session, {k: v for k, v in filters.items() if v is not None}, limit=limit)
        return [_to_schema(r) for r in records]
    except BenchmarkStoreError as exc:
        _raise_http(exc)


@router.get("/builds/{build_job_id}", response_model=List[BenchmarkResult])
def list_build_results(
    build_job_id: str,
    session: Session = Depends(get_db),
    repo: BenchmarkResultsRepo = Depends(get_results_repo),
) -> List[BenchmarkResult]:
    """All results of one build, ordered by scenario name and version."""
    try:
        return [_to_schema(r) for r in repo.list_by_build(session, build_job_id)]
    except BenchmarkStoreError as exc:
        _raise_http(exc)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=BenchmarkResult)
def create_result(
    payload: BenchmarkResult,
    session: Session = Depends(get_db),
    repo: BenchmarkResultsRepo = Depends(get_results_repo),
) -> BenchmarkResult:
    """Append one scenario result computed by the benchmark harness."""
    try:
        record = BenchmarkResultRecord.from_mapping(payload.model_dump())
        repo.insert(session, record)
        session.commit()
    except BenchmarkStoreError as exc:
        session.rollback()
        _raise_http(exc)
    except UNAVAILABLE_ERRORS as exc:
        session.rollback()
        _raise_http(StorageUnavailableError(str(exc)))
    return _to_schema(record)


@router.patch("", response_model=UpdateResultsResponse)
def update_results(
    payload: UpdateResultsRequest,
    session: Session = Depends(get_db),
    repo: BenchmarkResultsRepo = Depends(get_results_repo),
) -> UpdateResultsResponse:
    """Amend rows matching a non-empty filter."""
    try:
        n = repo.update(session, payload.values, payload.filter)
        session.commit()
    except BenchmarkStoreError as exc:
        session.rollback()
        _raise_http(exc)
    except UNAVAILABLE_ERRORS as exc:
        session.rollback()
        _raise_http(StorageUnavailableError(str(exc)))
    return UpdateResultsResponse(updated=n)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_results(repo: BenchmarkResultsRepo = Depends(get_results_repo)) -> None:
    """Results are append-only; every principal is refused."""
    try:
        repo.authorizer.require(repo.principal, "DELETE")
    except AuthorizationError as exc:
        _raise_http(exc)
