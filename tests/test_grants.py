"""Tests for the static access grant."""
import pytest
from sqlalchemy.dialects import postgresql

from db.errors import AuthorizationError
from db.grants import HETZNER_CI_GRANT, AccessGrant, Authorizer


@pytest.mark.parametrize("operation", ["SELECT", "INSERT", "UPDATE", "select"])
def test_ci_principal_holds_granted_operations(operation):
    assert Authorizer().authorize("hetzner-ci", operation)


def test_delete_is_denied_for_ci_principal():
    authorizer = Authorizer()

    assert not authorizer.authorize("hetzner-ci", "DELETE")
    with pytest.raises(AuthorizationError) as err:
        authorizer.require("hetzner-ci", "delete")
    assert err.value.operation == "DELETE"


@pytest.mark.parametrize("operation", ["SELECT", "INSERT", "UPDATE", "DELETE"])
def test_other_principals_are_denied_by_default(operation):
    assert not Authorizer().authorize("reporting", operation)


def test_unknown_operation_and_other_table_are_denied():
    authorizer = Authorizer()

    assert not authorizer.authorize("hetzner-ci", "TRUNCATE")
    assert not authorizer.authorize("hetzner-ci", "SELECT", table="other_table")


def test_delete_cannot_be_granted():
    with pytest.raises(ValueError):
        AccessGrant(principal="admin", privileges=frozenset({"SELECT", "DELETE"}))


def test_grant_renders_sql():
    expected = 'GRANT SELECT, INSERT, UPDATE ON TABLE parallel_benchmark_result TO "hetzner-ci"'

    assert HETZNER_CI_GRANT.to_sql() == expected
    assert HETZNER_CI_GRANT.to_sql(postgresql.dialect()) == expected
    assert HETZNER_CI_GRANT.to_revoke_sql().startswith("REVOKE SELECT, INSERT, UPDATE")


def test_repo_authorize_uses_its_principal_unless_overridden():
    from db.benchmark_results_repo import BenchmarkResultsRepo

    repo = BenchmarkResultsRepo(principal="hetzner-ci")

    assert repo.authorize("UPDATE")
    assert not repo.authorize("DELETE")
    assert not repo.authorize("SELECT", principal="reporting")
