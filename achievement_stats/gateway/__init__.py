"""
Gateway package for the achievement statistics core.

Centralizes row-retrieval concerns (the `QueryGateway` protocol, the in-memory
store, the PostgreSQL client). Keep this layer focused on I/O and resource
management, decoupled from aggregation logic.
"""

from achievement_stats.gateway.abstract import (
    ALL_COLUMNS,
    AbstractQueryGateway,
    Filter,
    FilterOp,
    GatewayError,
    Order,
    QueryGateway,
    QueryResult,
    eq,
    in_,
    is_null,
    neq,
    not_null,
)
from achievement_stats.gateway.memory import InMemoryGateway
from achievement_stats.gateway.postgres import PostgresGateway

__all__ = [
    "ALL_COLUMNS",
    "AbstractQueryGateway",
    "Filter",
    "FilterOp",
    "GatewayError",
    "Order",
    "QueryGateway",
    "QueryResult",
    "eq",
    "in_",
    "is_null",
    "neq",
    "not_null",
    "InMemoryGateway",
    "PostgresGateway",
]
