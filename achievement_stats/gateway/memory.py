"""
In-memory query gateway.

Holds each table as a list of dict rows and answers `query_rows` with the same
filter and ordering semantics as the PostgreSQL gateway (NULLs sort last on
ascending order, first on descending). Used by the test-suite and by the CLI
when a JSON fixture is supplied.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from achievement_stats.gateway.abstract import (
    ALL_COLUMNS,
    AbstractQueryGateway,
    Columns,
    Filter,
    FilterOp,
    Order,
    QueryResult,
    Row,
)
from achievement_stats.utils.logging import get_logger

log = get_logger(__name__)

PORTAL_TABLES = ("users", "achievement_types", "achievements")


def _matches(row: Row, flt: Filter) -> bool:
    value = row.get(flt.column)
    if flt.op is FilterOp.EQ:
        return value is not None and value == flt.value
    if flt.op is FilterOp.NEQ:
        return value is not None and value != flt.value
    if flt.op is FilterOp.IN:
        return value is not None and value in flt.value
    if flt.op is FilterOp.IS_NULL:
        return value is None
    if flt.op is FilterOp.NOT_NULL:
        return value is not None
    raise ValueError(f"Unsupported filter operator: {flt.op!r}")


def _project(row: Row, columns: Columns) -> Row:
    if columns == ALL_COLUMNS:
        return dict(row)
    return {column: row.get(column) for column in columns}


def _sort_key(value: Any) -> Any:
    """ISO timestamp strings compare as instants; naive ones are taken as UTC."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _sorted(rows: List[Row], order: Order) -> List[Row]:
    present = [row for row in rows if row.get(order.column) is not None]
    missing = [row for row in rows if row.get(order.column) is None]
    present.sort(key=lambda row: _sort_key(row[order.column]), reverse=not order.ascending)
    return present + missing if order.ascending else missing + present


class InMemoryGateway(AbstractQueryGateway):
    """
    Dict-backed row store.

    Tables listed in `failing_tables` answer every query with an error, which
    is how tests drive the aggregators' fallback paths. With `record_calls`
    the queried table names are appended to `calls`; it is off by default so a
    long-lived gateway does not grow an unbounded log.
    """

    name: str = "memory"

    def __init__(
        self,
        tables: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None,
        failing_tables: Iterable[str] = (),
        record_calls: bool = False,
    ) -> None:
        self._tables: Dict[str, List[Row]] = {name: [] for name in PORTAL_TABLES}
        for name, rows in (tables or {}).items():
            self._tables[name] = [dict(row) for row in rows]
        self.failing_tables: Set[str] = set(failing_tables)
        self.record_calls = record_calls
        self.calls: List[str] = []

    @classmethod
    def from_fixture(cls, path: Path | str) -> "InMemoryGateway":
        """Load tables from a JSON object of ``{table_name: [row, ...]}``."""
        with Path(path).open("r", encoding="utf-8") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError(f"Fixture {path} must contain a JSON object of tables")
        log.debug(
            "Fixture loaded",
            extra={"path": str(path), "tables": {k: len(v) for k, v in payload.items()}},
        )
        return cls(tables=payload)

    def insert(self, table: str, *rows: Mapping[str, Any]) -> None:
        self._tables.setdefault(table, []).extend(dict(row) for row in rows)

    def fail_table(self, table: str) -> None:
        self.failing_tables.add(table)

    async def query_rows(
        self,
        table: str,
        columns: Columns = ALL_COLUMNS,
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
    ) -> QueryResult:
        if self.record_calls:
            self.calls.append(table)
        if table in self.failing_tables:
            return QueryResult.failure(f'relation "{table}" is unavailable')
        if table not in self._tables:
            return QueryResult.failure(f'relation "public.{table}" does not exist')

        rows = [row for row in self._tables[table] if all(_matches(row, f) for f in filters)]
        if order is not None:
            rows = _sorted(rows, order)
        return QueryResult.ok(_project(row, columns) for row in rows)


__all__ = ["InMemoryGateway", "PORTAL_TABLES"]
