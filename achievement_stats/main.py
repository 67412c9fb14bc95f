from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from achievement_stats.aggregator import StatisticsService
from achievement_stats.config import get_settings
from achievement_stats.gateway import AbstractQueryGateway, InMemoryGateway, PostgresGateway
from achievement_stats.reporter import (
    print_band_counts,
    print_counters,
    print_score_points,
    print_statistics,
)
from achievement_stats.utils.logging import configure_from_settings

app = typer.Typer(help="Achievement portal dashboard statistics CLI.")

T = TypeVar("T")


def _fixture_option() -> Any:
    return typer.Option(
        None,
        "--fixture",
        "-f",
        help="Compute from a JSON fixture instead of PostgreSQL (default: STATS_FIXTURE_PATH).",
        exists=True,
        dir_okay=False,
    )


def _json_option() -> Any:
    return typer.Option(False, "--json", help="Print the camelCase JSON payload instead of tables.")


def _open_gateway(fixture: Optional[Path]) -> AbstractQueryGateway:
    source = "--fixture"
    settings = get_settings()
    if fixture is None and settings.stats_fixture_path:
        fixture, source = Path(settings.stats_fixture_path), "STATS_FIXTURE_PATH"
    if fixture is None:
        return PostgresGateway()
    try:
        return InMemoryGateway.from_fixture(fixture)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(f"cannot load fixture {fixture} ({source}): {exc}") from exc


def _run(call: Callable[[StatisticsService], Awaitable[T]], fixture: Optional[Path]) -> T:
    gateway = _open_gateway(fixture)

    async def _with_gateway() -> T:
        async with gateway:
            return await call(StatisticsService(gateway))

    return asyncio.run(_with_gateway())


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


@app.callback()
def _configure() -> None:
    configure_from_settings(get_settings())


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool={settings.db_pool_min_size}-{settings.db_pool_max_size} "
        f"statement_timeout={settings.db_statement_timeout_ms}ms | "
        f"fixture={settings.stats_fixture_path or '-'}"
    )


@app.command()
def student(
    user_id: str = typer.Argument(..., help="Student user id."),
    fixture: Optional[Path] = _fixture_option(),
    as_json: bool = _json_option(),
) -> None:
    """
    Student dashboard: totals, average score, completion rate, type breakdown, trend.
    """
    result = _run(lambda service: service.student(user_id), fixture)
    if as_json:
        _echo_json(result.to_payload())
        return
    print_statistics(result, title=f"Student {user_id}")


@app.command()
def teacher(
    user_id: str = typer.Argument(..., help="Teacher user id."),
    fixture: Optional[Path] = _fixture_option(),
    as_json: bool = _json_option(),
) -> None:
    """
    Teacher dashboard: approved publications per type and student score bands.
    """
    result = _run(lambda service: service.teacher(user_id), fixture)
    if as_json:
        _echo_json(result.to_payload())
        return
    print_statistics(result, title=f"Teacher {user_id}")


@app.command("teacher-students")
def teacher_students(
    teacher_id: str = typer.Argument(..., help="Teacher user id."),
    fixture: Optional[Path] = _fixture_option(),
    as_json: bool = _json_option(),
) -> None:
    """
    Score-band distribution of student achievements by type.
    """
    result = _run(lambda service: service.teacher_students(teacher_id), fixture)
    if as_json:
        _echo_json(result.to_payload())
        return
    print_band_counts(result)


@app.command()
def dashboard(
    teacher_id: str = typer.Argument(..., help="Teacher user id."),
    fixture: Optional[Path] = _fixture_option(),
    as_json: bool = _json_option(),
) -> None:
    """
    Teacher home counters: pending, published, students, projects.
    """
    result = _run(lambda service: service.dashboard(teacher_id), fixture)
    if as_json:
        _echo_json(result.to_payload())
        return
    print_counters(result, title=f"Dashboard {teacher_id}")


@app.command()
def approvals(
    instructor_id: str = typer.Argument(..., help="Instructor user id."),
    fixture: Optional[Path] = _fixture_option(),
    as_json: bool = _json_option(),
) -> None:
    """
    Review queue counts for an instructor.
    """
    result = _run(lambda service: service.approvals(instructor_id), fixture)
    if as_json:
        _echo_json(result.to_payload())
        return
    print_counters(result, title=f"Approvals {instructor_id}")


@app.command()
def trend(
    user_id: str = typer.Argument(..., help="Student user id."),
    fixture: Optional[Path] = _fixture_option(),
    as_json: bool = _json_option(),
) -> None:
    """
    Every scored achievement of a student, oldest first.
    """
    points = _run(lambda service: service.score_trend(user_id), fixture)
    if as_json:
        _echo_json([point.to_payload() for point in points])
        return
    print_score_points(points)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
