"""Static access grants on the benchmark result table.

The only grant is the one applied together with the schema: the CI role may
read, append and amend results but never delete them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, Optional, Sequence

from sqlalchemy.engine import Dialect

from db.errors import AuthorizationError
from db.poco.parallel_benchmark_result import TABLE_NAME

logger = logging.getLogger("benchmarks.grants")

OPERATIONS: Sequence[str] = ("SELECT", "INSERT", "UPDATE", "DELETE")
# Rows are append-only; no grant can carry DELETE.
NEVER_GRANTED: FrozenSet[str] = frozenset({"DELETE"})


@dataclass(frozen=True)
class AccessGrant:
    principal: str
    privileges: FrozenSet[str]
    table: str = TABLE_NAME

    def __post_init__(self) -> None:
        unknown = set(self.privileges) - set(OPERATIONS)
        if unknown:
            raise ValueError(f"Invalid privileges {sorted(unknown)}. Allowed: {OPERATIONS}")
        if set(self.privileges) & NEVER_GRANTED:
            raise ValueError(f"{TABLE_NAME} is append-only; DELETE cannot be granted")

    def to_sql(self, dialect: Optional[Dialect] = None) -> str:
        """Render the GRANT statement, quoting the principal for ``dialect``."""
        return f"GRANT {self._privs()} ON TABLE {self.table} TO {_quoter(dialect)(self.principal)}"

    def to_revoke_sql(self, dialect: Optional[Dialect] = None) -> str:
        return f"REVOKE {self._privs()} ON TABLE {self.table} FROM {_quoter(dialect)(self.principal)}"

    def _privs(self) -> str:
        return ", ".join(op for op in OPERATIONS if op in self.privileges)


def _quoter(dialect: Optional[Dialect]) -> Callable[[str], str]:
    if dialect is not None:
        return dialect.identifier_preparer.quote_identifier
    return lambda name: '"' + name.replace('"', '""') + '"'


HETZNER_CI_GRANT = AccessGrant(principal="hetzner-ci", privileges=frozenset({"SELECT", "INSERT", "UPDATE"}))
DEFAULT_GRANTS: Sequence[AccessGrant] = (HETZNER_CI_GRANT,)


class Authorizer:
    """Deny-by-default check of (principal, operation) against the grants."""

    def __init__(self, grants: Iterable[AccessGrant] = DEFAULT_GRANTS) -> None:
        self._grants = tuple(grants)

    @property
    def grants(self) -> Sequence[AccessGrant]:
        return self._grants

    def authorize(self, principal: str, operation: str, table: str = TABLE_NAME) -> bool:
        op = (operation or "").upper()
        if op in NEVER_GRANTED:
            return False
        return any(g.principal == principal and g.table == table and op in g.privileges for g in self._grants)

    def require(self, principal: str, operation: str, table: str = TABLE_NAME) -> None:
        """Raise AuthorizationError unless ``principal`` may run ``operation``."""
        if not self.authorize(principal, operation, table):
            logger.warning("Denied %s on %s for principal '%s'", operation.upper(), table, principal)
            raise AuthorizationError(principal, operation.upper())
