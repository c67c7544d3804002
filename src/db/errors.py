"""Errors raised by the benchmark result store.

``ValidationError`` and ``AuthorizationError`` are raised before any SQL is
issued. ``StorageUnavailableError`` wraps engine-level failures and chains
the original SQLAlchemy exception.
"""
from __future__ import annotations

from typing import Optional


class BenchmarkStoreError(Exception):
    """Base class for result store errors."""


class ValidationError(BenchmarkStoreError, ValueError):
    """A record or filter does not satisfy the table's column rules."""

    def __init__(self, field: Optional[str], message: str) -> None:
        super().__init__(message)
        self.field = field


class AuthorizationError(BenchmarkStoreError):
    """The principal holds no grant for the requested operation."""

    def __init__(self, principal: str, operation: str) -> None:
        super().__init__(f"principal '{principal}' is not allowed to {operation} parallel_benchmark_result")
        self.principal = principal
        self.operation = operation


class StorageUnavailableError(BenchmarkStoreError):
    """The database could not accept the operation (connectivity, capacity)."""
