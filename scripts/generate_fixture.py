"""
Fixture generation and loading script for the achievement statistics core.

Implements deterministic pseudo-random users, achievement types and
achievements, written as a JSON fixture for the in-memory gateway and
optionally loaded into PostgreSQL with COPY. Achievement statuses in the JSON
fixture alternate between the numeric code and the string tag, the way the
live store mixes them.
"""

from __future__ import annotations

import json
import random
import sys
import time
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List

import psycopg
import typer

from achievement_stats.config import get_settings
from achievement_stats.domain.models import AchievementStatus, UserRole, normalize_status
from achievement_stats.domain.reference import DEFAULT_ACHIEVEMENT_TYPES

app = typer.Typer(help="Generate a synthetic portal fixture (JSON) and optionally load it into Postgres.")

Tables = Dict[str, List[Dict[str, Any]]]

_STATUS_WEIGHTS = [
    (AchievementStatus.DRAFT, 1),
    (AchievementStatus.PENDING, 2),
    (AchievementStatus.APPROVED, 5),
    (AchievementStatus.REJECTED, 1),
]


def _uuid(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def _generate_tables(students: int, teachers: int, achievements: int, seed: int) -> Tables:
    rng = random.Random(seed)
    base = datetime(2025, 9, 1, tzinfo=UTC)

    users: List[Dict[str, Any]] = []
    for i in range(teachers):
        users.append({"id": _uuid(rng), "username": f"teacher{i + 1:02d}", "role": int(UserRole.TEACHER)})
    for i in range(students):
        users.append({"id": _uuid(rng), "username": f"student{i + 1:03d}", "role": int(UserRole.STUDENT)})
    teacher_ids = [u["id"] for u in users if u["role"] == UserRole.TEACHER]
    student_ids = [u["id"] for u in users if u["role"] == UserRole.STUDENT]

    types = [
        {"id": item.id, "name": item.name, "created_at": (base + timedelta(seconds=i)).isoformat()}
        for i, item in enumerate(DEFAULT_ACHIEVEMENT_TYPES)
    ]

    statuses, weights = zip(*_STATUS_WEIGHTS)
    rows: List[Dict[str, Any]] = []
    for i in range(achievements):
        status = rng.choices(statuses, weights=weights)[0]
        scored = status in (AchievementStatus.APPROVED, AchievementStatus.REJECTED) and rng.random() < 0.9
        rows.append(
            {
                "id": _uuid(rng),
                "title": f"Achievement {i + 1}",
                "type_id": rng.choice(types)["id"],
                # teachers publish too; their approved work feeds the teacher view
                "publisher_id": rng.choice(student_ids if rng.random() < 0.85 else teacher_ids),
                "instructor_id": rng.choice(teacher_ids),
                "status": int(status) if rng.random() < 0.5 else status.name.lower(),
                "score": round(rng.uniform(40, 100), 1) if scored else None,
                "created_at": (base + timedelta(hours=rng.randint(0, 24 * 240))).isoformat(),
            }
        )

    return {"users": users, "achievement_types": types, "achievements": rows}


def _write_fixture(path: Path, tables: Tables) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(tables, f, indent=2, ensure_ascii=False)


def _copy_into_db(dsn: str, tables: Tables) -> int:
    copied = 0
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy("COPY public.users (id, username, role) FROM STDIN") as copy:
                for row in tables["users"]:
                    copy.write_row((row["id"], row["username"], row["role"]))
                    copied += 1
            with cur.copy("COPY public.achievement_types (id, name, created_at) FROM STDIN") as copy:
                for row in tables["achievement_types"]:
                    copy.write_row((row["id"], row["name"], row["created_at"]))
                    copied += 1
            with cur.copy(
                """
                COPY public.achievements
                    (id, title, type_id, publisher_id, instructor_id, status, score, created_at)
                FROM STDIN
                """
            ) as copy:
                for row in tables["achievements"]:
                    # the status column is a smallint
                    status = normalize_status(row["status"])
                    copy.write_row(
                        (
                            row["id"],
                            row["title"],
                            row["type_id"],
                            row["publisher_id"],
                            row["instructor_id"],
                            int(status) if status is not None else None,
                            row["score"],
                            row["created_at"],
                        )
                    )
                    copied += 1
        conn.commit()
    return copied


@app.command()
def main(
    students: int = typer.Option(40, "--students", help="Number of student users."),
    teachers: int = typer.Option(5, "--teachers", help="Number of teacher users."),
    achievements: int = typer.Option(400, "--achievements", "-n", help="Number of achievements."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    output: Path = typer.Option(
        Path("fixtures/portal.json"),
        "--output",
        "-o",
        help="JSON fixture output path.",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    load: bool = typer.Option(
        False,
        "--load",
        help="Also load the generated rows into Postgres.",
    ),
) -> None:
    """
    Generate a synthetic fixture and optionally load it into Postgres using COPY.
    """
    start = time.perf_counter()
    tables = _generate_tables(students, teachers, achievements, seed)
    _write_fixture(output, tables)
    typer.echo(
        f"Wrote {len(tables['users'])} users, {len(tables['achievement_types'])} types, "
        f"{len(tables['achievements'])} achievements -> {output} "
        f"({time.perf_counter() - start:.2f}s, seed={seed})"
    )

    if not load:
        return

    load_start = time.perf_counter()
    typer.echo("Loading rows into Postgres via COPY...")
    copied = _copy_into_db(dsn or get_settings().dsn, tables)
    typer.echo(f"Loaded {copied:,} rows in {time.perf_counter() - load_start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
