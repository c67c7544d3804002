"""Tests for the parallel_benchmark_result repository."""
import pytest
from sqlalchemy.exc import OperationalError

from db.benchmark_results_repo import BenchmarkResultsRepo
from db.errors import AuthorizationError, StorageUnavailableError, ValidationError
from db.poco.parallel_benchmark_result import COLUMN_NAMES, BenchmarkResultRecord


class FailingSession:
    """Stand-in session whose database has gone away."""

    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.fixture
def repo():
    return BenchmarkResultsRepo(principal="hetzner-ci")


def test_insert_then_query_returns_identical_record(repo, session, sample_row):
    record = BenchmarkResultRecord(**sample_row)

    assert repo.insert(session, record) is None
    found = list(repo.query(session, scenario_name="point-lookup"))

    assert found == [record]
    assert found[0].load_phase_duration is None


def test_insert_accepts_plain_mapping(repo, session, sample_row):
    repo.insert(session, dict(sample_row, load_phase_duration=30))

    (found,) = repo.query(session, build_job_id="build-123")
    assert found.load_phase_duration == 30
    assert found.qps == 523.4


@pytest.mark.parametrize("missing", [c for c in COLUMN_NAMES if c != "load_phase_duration"])
def test_insert_missing_required_field_persists_nothing(repo, session, sample_row, missing):
    row = dict(sample_row)
    del row[missing]

    with pytest.raises(ValidationError) as err:
        repo.insert(session, row)

    assert err.value.field == missing
    assert missing in str(err.value)
    assert repo.count(session) == 0


def test_insert_record_with_none_required_field_fails(repo, session, sample_row):
    record = BenchmarkResultRecord(**dict(sample_row, p99=None))

    with pytest.raises(ValidationError) as err:
        repo.insert(session, record)

    assert err.value.field == "p99"
    assert repo.count(session) == 0


def test_duplicate_runs_are_kept_as_separate_rows(repo, session, sample_row):
    repo.insert(session, sample_row)
    repo.insert(session, sample_row)

    assert len(list(repo.query(session, scenario_name="point-lookup"))) == 2
    assert repo.count(session, build_job_id="build-123") == 2


def test_query_is_lazy_and_filters_on_any_columns(repo, session, sample_row):
    repo.insert_many(
        session,
        [
            sample_row,
            dict(sample_row, scenario_name="range-scan", load_phase_duration=12),
            dict(sample_row, build_job_id="build-124"),
        ],
    )

    it = repo.query(session, build_job_id="build-123")
    assert iter(it) is it
    assert {r.scenario_name for r in it} == {"point-lookup", "range-scan"}

    assert [r.scenario_name for r in repo.query(session, load_phase_duration=None, build_job_id="build-124")] == [
        "point-lookup"
    ]
    assert len(list(repo.query(session, {"build_job_id": ["build-123", "build-124"]}))) == 3
    assert len(list(repo.query(session, load_phase_duration=12))) == 1


def test_query_order_and_limit(repo, session, sample_row):
    repo.insert_many(session, [dict(sample_row, scenario_name=name) for name in ("c", "a", "b")])

    names = [r.scenario_name for r in repo.query(session, order_by=["scenario_name"], limit=2)]

    assert names == ["a", "b"]


def test_query_rejects_unknown_column(repo, session):
    with pytest.raises(ValidationError) as err:
        repo.query(session, timestamp="2024-01-01")

    assert err.value.field == "timestamp"


def test_update_requires_filter(repo, session, sample_row):
    repo.insert(session, sample_row)

    with pytest.raises(ValidationError):
        repo.update(session, {"slope": 0.5}, {})

    assert next(repo.query(session)).slope == 0.02


def test_update_touches_every_matching_row(repo, session, sample_row):
    repo.insert_many(session, [sample_row, sample_row, dict(sample_row, scenario_name="other")])

    n = repo.update(session, {"load_phase_duration": 5}, {"scenario_name": "point-lookup"})

    assert n == 2
    assert [r.load_phase_duration for r in repo.query(session, scenario_name="other")] == [None]


def test_update_cannot_null_required_column(repo, session, sample_row):
    repo.insert(session, sample_row)

    with pytest.raises(ValidationError) as err:
        repo.update(session, {"qps": None}, {"build_job_id": "build-123"})

    assert err.value.field == "qps"


def test_other_principal_is_refused_before_any_sql(session, sample_row):
    repo = BenchmarkResultsRepo(principal="reporting")

    with pytest.raises(AuthorizationError):
        repo.insert(session, sample_row)
    with pytest.raises(AuthorizationError):
        repo.query(session)
    with pytest.raises(AuthorizationError):
        repo.update(session, {"slope": 1.0}, {"build_job_id": "build-123"})


def test_engine_failure_surfaces_as_storage_unavailable(repo, sample_row):
    with pytest.raises(StorageUnavailableError) as err:
        repo.insert(FailingSession(), sample_row)

    assert isinstance(err.value.__cause__, OperationalError)


def test_session_scope_commits_for_next_session(db, repo, sample_row):
    with db.session_scope() as s:
        repo.insert(s, sample_row)

    with db.session_scope() as s:
        assert repo.count(s) == 1


def test_insert_many_writes_nothing_when_any_record_is_invalid(repo, session, sample_row):
    bad = dict(sample_row)
    del bad["std"]

    with pytest.raises(ValidationError) as err:
        repo.insert_many(session, [sample_row, bad])

    assert err.value.field == "std"
    assert repo.count(session) == 0


def test_list_filter_with_none_also_matches_null_rows(repo, session, sample_row):
    repo.insert_many(
        session,
        [sample_row, dict(sample_row, load_phase_duration=5), dict(sample_row, load_phase_duration=7)],
    )

    found = sorted(
        (r.load_phase_duration or 0) for r in repo.query(session, load_phase_duration=[None, 5])
    )

    assert found == [0, 5]
    assert repo.count(session, load_phase_duration=[None]) == 1


@pytest.mark.parametrize("limit", [-1, True, "10"])
def test_query_rejects_bad_limit(repo, session, limit):
    with pytest.raises(ValidationError) as err:
        repo.query(session, limit=limit)

    assert err.value.field == "limit"
