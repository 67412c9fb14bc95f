from __future__ import annotations

from typing import Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from achievement_stats.domain.models import (
    ApprovalStats,
    DashboardCounters,
    ScorePoint,
    StatisticsResult,
    StudentPublications,
)


def _series_table(title: str, label_header: str, labels: List[str], values: List[object]) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column(label_header, style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")
    for label, value in zip(labels, values):
        table.add_row(label, f"{value:g}" if isinstance(value, float) else str(value))
    return table


def band_table(publications: StudentPublications, title: str = "Student Score Bands") -> Table:
    """Type x band grid; one row per achievement type."""
    table = Table(title=title, box=box.ROUNDED, caption="excellent >= 90, good >= 80, average >= 70, pass >= 60")
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Excellent", justify="right", style="bold green")
    table.add_column("Good", justify="right", style="green")
    table.add_column("Average", justify="right", style="yellow")
    table.add_column("Pass", justify="right", style="red")
    for row in zip(
        publications.labels,
        publications.excellent,
        publications.good,
        publications.average,
        publications.pass_,
    ):
        table.add_row(*(str(cell) for cell in row))
    return table


def print_statistics(result: StatisticsResult, title: str, console: Optional[Console] = None) -> None:
    """
    Render a dashboard statistics result as rich tables.

    The summary table is only shown for student results; the band table only
    when it has rows.
    """
    console = console or Console()

    if result.student_stats is not None:
        stats = result.student_stats
        summary = Table(title=title, box=box.ROUNDED)
        summary.add_column("Total", justify="right", style="magenta")
        summary.add_column("Passed", justify="right", style="blue")
        summary.add_column("Average Score", justify="right", style="bold green")
        summary.add_column("Completion %", justify="right", style="yellow")
        summary.add_row(
            str(stats.total_projects),
            str(stats.passed_projects),
            f"{stats.average_score:.2f}",
            f"{stats.completion_rate:.2f}",
        )
        console.print(summary)
    else:
        console.print(f"[bold]{title}[/bold]")

    console.print(
        _series_table(
            "Publications by Type",
            "Type",
            result.publication_by_type.labels,
            list(result.publication_by_type.data),
        )
    )
    if result.score_trend.labels:
        console.print(
            _series_table(
                "Score Trend", "Attempt", result.score_trend.labels, list(result.score_trend.scores)
            )
        )
    if result.student_publications.labels:
        console.print(band_table(result.student_publications))


def print_counters(counters: DashboardCounters | ApprovalStats, title: str, console: Optional[Console] = None) -> None:
    console = console or Console()
    payload: Dict[str, int] = counters.to_payload()
    console.print(_series_table(title, "Counter", list(payload), list(payload.values())))


def print_band_counts(publications: StudentPublications, console: Optional[Console] = None) -> None:
    console = console or Console()
    if not publications.labels:
        console.print("[yellow]No scored student achievements.[/yellow]")
        return
    console.print(band_table(publications))


def print_score_points(points: List[ScorePoint], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not points:
        console.print("[yellow]No scored achievements.[/yellow]")
        return
    table = Table(title="Score History", box=box.ROUNDED)
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Score", justify="right", style="bold green")
    for point in points:
        table.add_row(point.date.isoformat() if point.date else "-", f"{point.score:g}")
    console.print(table)


__all__ = [
    "band_table",
    "print_band_counts",
    "print_counters",
    "print_score_points",
    "print_statistics",
]
