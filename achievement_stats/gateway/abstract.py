"""
Query gateway interfaces and result contracts for the achievement statistics core.

The aggregators never talk to a database directly; they issue single-shot,
filtered row retrievals through a `QueryGateway` and receive a `QueryResult`
that carries either the rows or an error. Concrete gateways (in-memory,
PostgreSQL) implement the protocol and must never raise on a failed query.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

Row = Dict[str, Any]
Columns = Union[str, Sequence[str]]

ALL_COLUMNS = "*"


class FilterOp(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    IN = "in"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


@dataclass(frozen=True)
class Filter:
    """A single predicate on one column."""

    column: str
    op: FilterOp
    value: Any = None


def eq(column: str, value: Any) -> Filter:
    return Filter(column, FilterOp.EQ, value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, FilterOp.NEQ, value)


def in_(column: str, values: Iterable[Any]) -> Filter:
    return Filter(column, FilterOp.IN, tuple(values))


def is_null(column: str) -> Filter:
    return Filter(column, FilterOp.IS_NULL)


def not_null(column: str) -> Filter:
    return Filter(column, FilterOp.NOT_NULL)


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class GatewayError:
    message: str


@dataclass(frozen=True)
class QueryResult:
    """
    Outcome of one row retrieval: exactly one of `rows` / `error` is set.
    """

    rows: Optional[List[Row]] = field(default=None)
    error: Optional[GatewayError] = field(default=None)

    @classmethod
    def ok(cls, rows: Iterable[Row]) -> "QueryResult":
        return cls(rows=list(rows), error=None)

    @classmethod
    def failure(cls, message: str) -> "QueryResult":
        return cls(rows=None, error=GatewayError(message))

    @property
    def failed(self) -> bool:
        return self.error is not None


@runtime_checkable
class QueryGateway(Protocol):
    """
    Common interface every row store used by the aggregators must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    """

    name: str

    async def query_rows(
        self,
        table: str,
        columns: Columns = ALL_COLUMNS,
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
    ) -> QueryResult:
        """
        Retrieve rows from `table` matching all `filters`.

        Parameters
        ----------
        table : str
            Table name.
        columns : str | Sequence[str]
            Projection; ``"*"`` for every column.
        filters : Sequence[Filter]
            Predicates combined with AND.
        order : Order | None
            Optional single-column ordering.

        Returns
        -------
        QueryResult
            The rows, or the error reported by the store.
        """
        ...


class AbstractQueryGateway(abc.ABC):
    """
    Optional ABC helper for class-based gateways.

    Subclasses set `name` and implement `query_rows`; `close` releases any
    resources and is a no-op by default.
    """

    name: str

    @abc.abstractmethod
    async def query_rows(
        self,
        table: str,
        columns: Columns = ALL_COLUMNS,
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
    ) -> QueryResult:  # pragma: no cover - interface only
        """Run one filtered retrieval."""
        raise NotImplementedError

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> "AbstractQueryGateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = [
    "ALL_COLUMNS",
    "Row",
    "FilterOp",
    "Filter",
    "Order",
    "GatewayError",
    "QueryResult",
    "QueryGateway",
    "AbstractQueryGateway",
    "eq",
    "neq",
    "in_",
    "is_null",
    "not_null",
]
