"""
PostgreSQL query gateway backed by an asyncpg connection pool.

Translates the gateway filter vocabulary into parameterised SELECT statements.
Pool creation is retried with tenacity for transient connection failures; any
error raised while querying is reported through `QueryResult.failure` instead
of being propagated, so the aggregators see the same contract as with the
in-memory store.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, List, Optional, Sequence, Tuple

import asyncpg
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from achievement_stats.config import get_settings
from achievement_stats.gateway.abstract import (
    ALL_COLUMNS,
    AbstractQueryGateway,
    Columns,
    Filter,
    FilterOp,
    Order,
    QueryResult,
)
from achievement_stats.utils.logging import get_logger

log = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_QUERY_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


def _quote(identifier: str) -> str:
    if not _IDENTIFIER.match(identifier):
        raise ValueError(f"Invalid SQL identifier: {identifier!r}")
    return f'"{identifier}"'


def build_select(
    table: str,
    columns: Columns = ALL_COLUMNS,
    filters: Sequence[Filter] = (),
    order: Optional[Order] = None,
) -> Tuple[str, List[Any]]:
    """
    Compose a parameterised SELECT for asyncpg (``$n`` placeholders).

    Returns
    -------
    tuple[str, list]
        SQL text and positional parameters.
    """
    if columns == ALL_COLUMNS:
        projection = "*"
    else:
        projection = ", ".join(_quote(column) for column in columns)

    clauses: List[str] = []
    params: List[Any] = []
    for flt in filters:
        column = _quote(flt.column)
        if flt.op is FilterOp.EQ:
            params.append(flt.value)
            clauses.append(f"{column} = ${len(params)}")
        elif flt.op is FilterOp.NEQ:
            params.append(flt.value)
            clauses.append(f"{column} <> ${len(params)}")
        elif flt.op is FilterOp.IN:
            params.append(list(flt.value))
            clauses.append(f"{column} = ANY(${len(params)})")
        elif flt.op is FilterOp.IS_NULL:
            clauses.append(f"{column} IS NULL")
        elif flt.op is FilterOp.NOT_NULL:
            clauses.append(f"{column} IS NOT NULL")
        else:
            raise ValueError(f"Unsupported filter operator: {flt.op!r}")

    sql = f"SELECT {projection} FROM public.{_quote(table)}"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    if order is not None:
        sql += f" ORDER BY {_quote(order.column)} {'ASC' if order.ascending else 'DESC'}"
    return sql, params


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OSError, ConnectionError, asyncpg.CannotConnectNowError)),
    reraise=True,
)
async def _create_pool(dsn: str, min_size: int, max_size: int, timeout_ms: int) -> asyncpg.Pool:
    """
    Create an asyncpg pool with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    """
    server_settings = {"statement_timeout": str(timeout_ms)} if timeout_ms > 0 else None
    return await asyncpg.create_pool(
        dsn,
        min_size=min_size,
        max_size=max_size,
        server_settings=server_settings,
    )


class PostgresGateway(AbstractQueryGateway):
    """
    Row retrieval against the portal's PostgreSQL schema.

    The pool is created lazily on the first query and released by `close`
    (or by leaving an ``async with`` block).
    """

    name: str = "postgres"

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        pool_min_size: Optional[int] = None,
        pool_max_size: Optional[int] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._dsn = dsn_override or settings.dsn
        self.pool_min_size = pool_min_size or settings.db_pool_min_size
        self.pool_max_size = pool_max_size or settings.db_pool_max_size
        self.statement_timeout_ms = (
            statement_timeout_ms
            if statement_timeout_ms is not None
            else settings.db_statement_timeout_ms
        )
        self._pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self) -> asyncpg.Pool:
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await _create_pool(
                    self._dsn,
                    self.pool_min_size,
                    self.pool_max_size,
                    self.statement_timeout_ms,
                )
            return self._pool

    async def query_rows(
        self,
        table: str,
        columns: Columns = ALL_COLUMNS,
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
    ) -> QueryResult:
        try:
            sql, params = build_select(table, columns, filters, order)
        except ValueError as exc:
            return QueryResult.failure(str(exc))

        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                records = await conn.fetch(sql, *params)
        except _QUERY_ERRORS as exc:
            log.warning(
                "Query failed",
                extra={"table": table, "error": str(exc), "error_type": type(exc).__name__},
            )
            return QueryResult.failure(str(exc) or type(exc).__name__)

        return QueryResult.ok(dict(record) for record in records)

    async def close(self) -> None:
        if self._pool is not None:
            try:
                await self._pool.close()
            finally:
                self._pool = None


__all__ = ["PostgresGateway", "build_select"]
