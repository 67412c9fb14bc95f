"""
Internal error taxonomy for the statistics aggregators.

These exceptions never leave the public aggregator entry points; they are
caught there, logged, and converted into the documented fallback result.
"""

from __future__ import annotations


class StatisticsError(Exception):
    """Base class for errors raised while computing dashboard statistics."""


class RetrievalError(StatisticsError):
    """A gateway query failed or returned rows that could not be validated."""

    def __init__(self, table: str, message: str) -> None:
        super().__init__(f"{table}: {message}")
        self.table = table
        self.message = message


class MissingIdentityError(StatisticsError):
    """No current user id was supplied to an entry point that needs one."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation}: no current user id")
        self.operation = operation


__all__ = ["StatisticsError", "RetrievalError", "MissingIdentityError"]
