"""
Pytest configuration for the achievement statistics core.

Provides fixtures for:
- In-memory gateways seeded with a small, hand-checked portal dataset
- Database connection management for integration tests
- Schema initialisation and table cleanup
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Iterable, List, Mapping

import psycopg
import pytest

from achievement_stats.config import Settings
from achievement_stats.gateway import InMemoryGateway

STUDENT_A = "11111111-0000-4000-8000-000000000001"
STUDENT_B = "11111111-0000-4000-8000-000000000002"
TEACHER = "22222222-0000-4000-8000-000000000001"
OTHER_TEACHER = "22222222-0000-4000-8000-000000000002"

TYPE_REPORT = "33333333-0000-4000-8000-000000000001"
TYPE_PAPER = "33333333-0000-4000-8000-000000000002"
TYPE_PROJECT = "33333333-0000-4000-8000-000000000003"


def portal_tables() -> Dict[str, List[Dict[str, Any]]]:
    """
    Small portal dataset.

    Statuses deliberately mix the numeric code and the string tag.
    """
    return {
        "users": [
            {"id": STUDENT_A, "role": 1},
            {"id": STUDENT_B, "role": 1},
            {"id": TEACHER, "role": 2},
            {"id": OTHER_TEACHER, "role": 2},
        ],
        "achievement_types": [
            {"id": TYPE_PAPER, "name": "Paper", "created_at": "2025-01-02T00:00:00+00:00"},
            {"id": TYPE_REPORT, "name": "Report", "created_at": "2025-01-01T00:00:00+00:00"},
            {"id": TYPE_PROJECT, "name": "Project", "created_at": "2025-01-03T00:00:00+00:00"},
        ],
        "achievements": [
            # student A
            {"id": "a1", "publisher_id": STUDENT_A, "instructor_id": TEACHER, "type_id": TYPE_REPORT,
             "status": 2, "score": 92, "created_at": "2025-03-01T10:00:00+00:00"},
            {"id": "a2", "publisher_id": STUDENT_A, "instructor_id": TEACHER, "type_id": TYPE_REPORT,
             "status": "approved", "score": 78, "created_at": "2025-02-01T10:00:00+00:00"},
            {"id": "a3", "publisher_id": STUDENT_A, "instructor_id": TEACHER, "type_id": TYPE_PAPER,
             "status": "pending", "score": None, "created_at": "2025-04-01T10:00:00+00:00"},
            {"id": "a4", "publisher_id": STUDENT_A, "instructor_id": OTHER_TEACHER, "type_id": TYPE_PROJECT,
             "status": 3, "score": 55, "created_at": "2025-05-01T10:00:00+00:00"},
            # student B
            {"id": "b1", "publisher_id": STUDENT_B, "instructor_id": TEACHER, "type_id": TYPE_PROJECT,
             "status": 1, "score": None, "created_at": "2025-03-05T10:00:00+00:00"},
            {"id": "b2", "publisher_id": STUDENT_B, "instructor_id": TEACHER, "type_id": TYPE_PAPER,
             "status": 2, "score": 85, "created_at": "2025-03-06T10:00:00+00:00"},
            # teacher's own work
            {"id": "t1", "publisher_id": TEACHER, "instructor_id": OTHER_TEACHER, "type_id": TYPE_PAPER,
             "status": 2, "score": None, "created_at": "2025-01-10T10:00:00+00:00"},
            {"id": "t2", "publisher_id": TEACHER, "instructor_id": OTHER_TEACHER, "type_id": TYPE_PROJECT,
             "status": "approved", "score": None, "created_at": "2025-01-11T10:00:00+00:00"},
            {"id": "t3", "publisher_id": TEACHER, "instructor_id": OTHER_TEACHER, "type_id": TYPE_PAPER,
             "status": "pending", "score": None, "created_at": "2025-01-12T10:00:00+00:00"},
        ],
    }


@pytest.fixture()
def make_gateway() -> Callable[..., InMemoryGateway]:
    """
    Factory for in-memory gateways with explicit tables.

    Unspecified portal tables start empty.
    """

    def _make(
        tables: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        failing_tables: Iterable[str] = (),
    ) -> InMemoryGateway:
        return InMemoryGateway(tables=tables, failing_tables=failing_tables, record_calls=True)

    return _make


@pytest.fixture()
def portal_gateway() -> InMemoryGateway:
    return InMemoryGateway(tables=portal_tables(), record_calls=True)


@pytest.fixture(scope="session")
def test_dsn() -> str:
    """
    DSN of the integration database, built from the DB_* environment.

    `.env` is ignored so local developer settings never point tests at a real portal.
    """
    return Settings(_env_file=None).dsn


@pytest.fixture(scope="session")
def portal_db(test_dsn: str) -> Generator[psycopg.Connection, None, None]:
    """
    Session connection with db/init.sql applied; skips when Postgres is unreachable.
    """
    try:
        conn = psycopg.connect(test_dsn, connect_timeout=5)
    except psycopg.OperationalError as exc:
        pytest.skip(f"Postgres not reachable for integration tests: {exc}")

    schema = (Path(__file__).resolve().parents[1] / "db" / "init.sql").read_text(encoding="utf-8")
    with conn.transaction():
        conn.execute(schema)
    try:
        yield conn
    finally:
        conn.close()


def _truncate_portal(conn: psycopg.Connection) -> None:
    with conn.transaction():
        conn.execute("TRUNCATE public.achievements, public.achievement_types, public.users CASCADE")


@pytest.fixture()
def clean_portal_tables(portal_db: psycopg.Connection) -> Generator[None, None, None]:
    _truncate_portal(portal_db)
    yield
    _truncate_portal(portal_db)


@pytest.fixture()
def restore_root_logger() -> Generator[logging.Logger, None, None]:
    """
    Undo root logger changes made by configure_logging.
    """
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
