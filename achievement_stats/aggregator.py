"""
Dashboard statistics aggregation.

Every public entry point takes the query gateway and an explicit user id,
issues one or more row retrievals, and reduces the rows into a fixed-shape
result. Entry points never raise: a failed retrieval, an invalid row or a
missing user id is logged and answered with the documented fallback result,
so dashboards always receive something renderable.

Usage:
    from achievement_stats.aggregator import StatisticsService
    from achievement_stats.gateway import InMemoryGateway

    service = StatisticsService(InMemoryGateway.from_fixture("fixture.json"))
    result = await service.student("u-student-1")
    print(result.to_payload())
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from achievement_stats.domain.models import (
    AchievementRecord,
    AchievementStatus,
    AchievementType,
    ApprovalStats,
    DashboardCounters,
    PublicationByType,
    ScorePoint,
    ScoreTrend,
    StatisticsResult,
    StudentPublications,
    StudentStats,
    UserRecord,
    UserRole,
)
from achievement_stats.domain.reference import (
    PLACEHOLDER_TREND_POINTS,
    STUDENT_PLACEHOLDER_LABELS,
    UNCLASSIFIED_LABEL,
    default_type_labels,
)
from achievement_stats.errors import MissingIdentityError, RetrievalError
from achievement_stats.gateway.abstract import (
    ALL_COLUMNS,
    Columns,
    Filter,
    Order,
    QueryGateway,
    eq,
    in_,
    not_null,
)
from achievement_stats.utils.logging import get_logger

log = get_logger(__name__)

ACHIEVEMENTS = "achievements"
ACHIEVEMENT_TYPES = "achievement_types"
USERS = "users"

# Inclusive lower bounds, checked in order; first match wins.
SCORE_BANDS = (
    ("excellent", 90.0),
    ("good", 80.0),
    ("average", 70.0),
    ("pass", 60.0),
)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
_CENTS = Decimal("0.01")

M = TypeVar("M", bound=BaseModel)


# ---------------------------------------------------------------------------
# Retrieval helpers
# ---------------------------------------------------------------------------


async def _fetch(
    gateway: QueryGateway,
    table: str,
    model: Type[M],
    columns: Columns = ALL_COLUMNS,
    filters: Sequence[Filter] = (),
    order: Optional[Order] = None,
) -> List[M]:
    result = await gateway.query_rows(table, columns, filters, order)
    if result.error is not None:
        raise RetrievalError(table, result.error.message)
    try:
        return [model.model_validate(row) for row in result.rows or []]
    except ValidationError as exc:
        raise RetrievalError(table, f"invalid row ({exc.error_count()} errors)") from exc


async def _type_names(gateway: QueryGateway) -> Dict[str, str]:
    types = await _fetch(gateway, ACHIEVEMENT_TYPES, AchievementType, columns=("id", "name"))
    return {item.id: item.name for item in types}


def _require_identity(user_id: Optional[str], operation: str) -> str:
    if user_id is None or not str(user_id).strip():
        raise MissingIdentityError(operation)
    return str(user_id)


def _log_fallback(operation: str, user_id: Optional[str], exc: Exception) -> None:
    if isinstance(exc, MissingIdentityError):
        log.warning(
            f"[{operation}] no current user, returning fallback",
            extra={"operation": operation},
        )
        return
    log.error(
        f"[{operation}] failed, returning fallback",
        exc_info=exc,
        extra={"operation": operation, "user_id": user_id, "error": str(exc)},
    )


# ---------------------------------------------------------------------------
# Reductions (pure)
# ---------------------------------------------------------------------------


def classify_score(score: float) -> Optional[str]:
    """Return the score band name, or None for scores below the pass mark."""
    for band, floor in SCORE_BANDS:
        if score >= floor:
            return band
    return None


def round_half_up(value: float) -> float:
    """Round to 2 dp with halves away from zero, as the portal displays them."""
    return float(Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def attempt_label(index: int) -> str:
    return f"attempt #{index}"


def _type_label(record: AchievementRecord, type_names: Dict[str, str]) -> str:
    if record.type_id is None:
        return UNCLASSIFIED_LABEL
    return type_names.get(record.type_id, UNCLASSIFIED_LABEL)


def count_by_type(
    records: Iterable[AchievementRecord], type_names: Dict[str, str]
) -> Dict[str, int]:
    """Count records per type name; dict insertion order is first-seen order."""
    counts: Dict[str, int] = {}
    for record in records:
        label = _type_label(record, type_names)
        counts[label] = counts.get(label, 0) + 1
    return counts


def build_score_trend(records: Iterable[AchievementRecord]) -> ScoreTrend:
    """
    Passed, scored records in ascending `created_at` order.

    `sorted` is stable, so equal timestamps keep retrieval order; records
    without a timestamp come first.
    """
    scored = [r for r in records if r.passed and r.score is not None]
    scored = sorted(scored, key=lambda r: r.created_at or _EARLIEST)
    return ScoreTrend(
        labels=[attempt_label(i) for i in range(1, len(scored) + 1)],
        scores=[r.score for r in scored],
    )


def summarize_student(
    records: Sequence[AchievementRecord], type_names: Dict[str, str]
) -> StatisticsResult:
    total = len(records)
    passed = [r for r in records if r.passed]
    passed_scores = [r.score for r in passed if r.score is not None]

    average = sum(passed_scores) / len(passed_scores) if passed_scores else 0.0
    completion = len(passed) / total * 100 if total else 0.0

    by_type = count_by_type(records, type_names)
    return StatisticsResult(
        publication_by_type=PublicationByType(labels=list(by_type), data=list(by_type.values())),
        score_trend=build_score_trend(records),
        student_publications=StudentPublications(),
        student_stats=StudentStats(
            total_projects=total,
            passed_projects=len(passed),
            average_score=round_half_up(average),
            completion_rate=round_half_up(completion),
        ),
    )


def tally_by_type_order(
    records: Iterable[AchievementRecord], types: Sequence[AchievementType]
) -> PublicationByType:
    """Count records into buckets ordered like `types`; unknown type ids are skipped."""
    index = {item.id: position for position, item in enumerate(types)}
    data = [0] * len(types)
    for record in records:
        position = index.get(record.type_id) if record.type_id is not None else None
        if position is not None:
            data[position] += 1
    return PublicationByType(labels=[item.name for item in types], data=data)


def band_counts(
    records: Iterable[AchievementRecord], type_names: Dict[str, str]
) -> StudentPublications:
    """Per-type score-band counts; a type appears once it has any scored record."""
    buckets: Dict[str, Dict[str, int]] = {}
    for record in records:
        if record.score is None:
            continue
        bucket = buckets.setdefault(
            _type_label(record, type_names), {band: 0 for band, _ in SCORE_BANDS}
        )
        band = classify_score(record.score)
        if band is not None:
            bucket[band] += 1

    labels = list(buckets)
    return StudentPublications(
        excellent=[buckets[label]["excellent"] for label in labels],
        good=[buckets[label]["good"] for label in labels],
        average=[buckets[label]["average"] for label in labels],
        pass_=[buckets[label]["pass"] for label in labels],
        labels=labels,
    )


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------


def student_fallback() -> StatisticsResult:
    labels = list(STUDENT_PLACEHOLDER_LABELS)
    return StatisticsResult(
        publication_by_type=PublicationByType(labels=labels, data=[0] * len(labels)),
        score_trend=ScoreTrend(
            labels=[attempt_label(i) for i in range(1, PLACEHOLDER_TREND_POINTS + 1)],
            scores=[0.0] * PLACEHOLDER_TREND_POINTS,
        ),
        student_publications=StudentPublications(),
        student_stats=StudentStats(),
    )


def teacher_fallback() -> StatisticsResult:
    labels = default_type_labels()
    return StatisticsResult(
        publication_by_type=PublicationByType(labels=labels, data=[0] * len(labels)),
        score_trend=ScoreTrend(),
        student_publications=StudentPublications.zeros(labels),
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


async def get_student_statistics(
    gateway: QueryGateway, current_user_id: Optional[str]
) -> StatisticsResult:
    """
    Statistics for a student's own dashboard.

    Counts every achievement the student filed, the approved ones, the
    average approved score, completion rate, per-type publication counts and
    the score trend over approved, scored achievements.
    """
    operation = "student_statistics"
    try:
        user_id = _require_identity(current_user_id, operation)
        records = await _fetch(
            gateway,
            ACHIEVEMENTS,
            AchievementRecord,
            columns=("id", "score", "status", "type_id", "created_at"),
            filters=(eq("publisher_id", user_id),),
        )
        type_names = await _type_names(gateway) if any(r.type_id for r in records) else {}
        result = summarize_student(records, type_names)
    except Exception as exc:  # noqa: BLE001 - dashboards always get a renderable result
        _log_fallback(operation, current_user_id, exc)
        return student_fallback()

    stats = result.student_stats
    log.info(
        f"[{operation}] computed",
        extra={
            "operation": operation,
            "user_id": user_id,
            "total_projects": stats.total_projects,
            "passed_projects": stats.passed_projects,
            "average_score": stats.average_score,
            "completion_rate": stats.completion_rate,
            "type_count": len(result.publication_by_type.labels),
            "score_points": len(result.score_trend.scores),
        },
    )
    return result


async def _collect_band_counts(
    gateway: QueryGateway, type_names: Optional[Dict[str, str]] = None
) -> StudentPublications:
    students = await _fetch(
        gateway, USERS, UserRecord, columns=("id", "role"), filters=(eq("role", int(UserRole.STUDENT)),)
    )
    if not students:
        return StudentPublications()

    records = await _fetch(
        gateway,
        ACHIEVEMENTS,
        AchievementRecord,
        columns=("id", "score", "type_id"),
        filters=(in_("publisher_id", [s.id for s in students]), not_null("score")),
    )
    if type_names is None:
        type_names = await _type_names(gateway) if records else {}
    return band_counts(records, type_names)


async def get_teacher_student_stats(
    gateway: QueryGateway, teacher_id: Optional[str]
) -> StudentPublications:
    """
    Score-band distribution of student achievements, grouped by type.

    Covers every student in the system; `teacher_id` does not narrow the set.
    """
    operation = "teacher_student_stats"
    try:
        return await _collect_band_counts(gateway)
    except Exception as exc:  # noqa: BLE001 - dashboards always get a renderable result
        _log_fallback(operation, teacher_id, exc)
        return StudentPublications()


async def get_teacher_statistics(
    gateway: QueryGateway, current_user_id: Optional[str]
) -> StatisticsResult:
    """
    Statistics for a teacher's dashboard.

    Publication counts use the full type list (ordered by creation time) as
    buckets and count the teacher's own approved achievements. The score trend
    is not computed for teachers.
    """
    operation = "teacher_statistics"
    try:
        user_id = _require_identity(current_user_id, operation)
        types = await _fetch(
            gateway,
            ACHIEVEMENT_TYPES,
            AchievementType,
            columns=("id", "name", "created_at"),
            order=Order("created_at"),
        )
        if not types:
            raise RetrievalError(ACHIEVEMENT_TYPES, "no achievement types defined")

        records = await _fetch(
            gateway,
            ACHIEVEMENTS,
            AchievementRecord,
            columns=("id", "status", "type_id"),
            filters=(eq("publisher_id", user_id),),
        )
        publication = tally_by_type_order((r for r in records if r.passed), types)
        student_publications = await _collect_band_counts(
            gateway, {item.id: item.name for item in types}
        )
    except Exception as exc:  # noqa: BLE001 - dashboards always get a renderable result
        _log_fallback(operation, current_user_id, exc)
        return teacher_fallback()

    log.info(
        f"[{operation}] computed",
        extra={
            "operation": operation,
            "user_id": user_id,
            "published": sum(publication.data),
            "band_labels": len(student_publications.labels),
        },
    )
    return StatisticsResult(
        publication_by_type=publication,
        score_trend=ScoreTrend(),
        student_publications=student_publications,
    )


async def get_teacher_dashboard_stats(
    gateway: QueryGateway, teacher_id: Optional[str]
) -> DashboardCounters:
    """
    Headline counters for the teacher home page.

    Pending and project/student counts follow the instructor link; the
    published count follows the publisher link (the teacher's own work).
    """
    operation = "teacher_dashboard_stats"
    try:
        user_id = _require_identity(teacher_id, operation)
        supervised_status, own_status, supervised_publishers, supervised_ids = await asyncio.gather(
            _fetch(
                gateway,
                ACHIEVEMENTS,
                AchievementRecord,
                columns=("id", "status"),
                filters=(eq("instructor_id", user_id),),
            ),
            _fetch(
                gateway,
                ACHIEVEMENTS,
                AchievementRecord,
                columns=("id", "status"),
                filters=(eq("publisher_id", user_id),),
            ),
            _fetch(
                gateway,
                ACHIEVEMENTS,
                AchievementRecord,
                columns=("publisher_id",),
                filters=(eq("instructor_id", user_id),),
            ),
            _fetch(
                gateway,
                ACHIEVEMENTS,
                AchievementRecord,
                columns=("id",),
                filters=(eq("instructor_id", user_id),),
            ),
        )
    except Exception as exc:  # noqa: BLE001 - dashboards always get a renderable result
        _log_fallback(operation, teacher_id, exc)
        return DashboardCounters()

    return DashboardCounters(
        pending_count=sum(1 for r in supervised_status if r.status is AchievementStatus.PENDING),
        published_count=sum(1 for r in own_status if r.passed),
        student_count=len({r.publisher_id for r in supervised_publishers if r.publisher_id}),
        project_count=len(supervised_ids),
    )


async def get_approval_stats(
    gateway: QueryGateway, instructor_id: Optional[str]
) -> ApprovalStats:
    """Pending / approved / rejected counts of achievements an instructor supervises."""
    operation = "approval_stats"
    try:
        user_id = _require_identity(instructor_id, operation)
        records = await _fetch(
            gateway,
            ACHIEVEMENTS,
            AchievementRecord,
            columns=("id", "status"),
            filters=(eq("instructor_id", user_id),),
        )
    except Exception as exc:  # noqa: BLE001 - dashboards always get a renderable result
        _log_fallback(operation, instructor_id, exc)
        return ApprovalStats()

    pending = sum(1 for r in records if r.status is AchievementStatus.PENDING)
    approved = sum(1 for r in records if r.status is AchievementStatus.APPROVED)
    rejected = sum(1 for r in records if r.status is AchievementStatus.REJECTED)
    return ApprovalStats(
        pending_count=pending,
        approved_count=approved,
        rejected_count=rejected,
        total_count=pending + approved + rejected,
    )


async def get_pending_count(gateway: QueryGateway, instructor_id: Optional[str]) -> int:
    """Achievements awaiting review by the instructor; 0 when unavailable."""
    return (await get_approval_stats(gateway, instructor_id)).pending_count


async def get_student_publication_stats(
    gateway: QueryGateway, user_id: Optional[str]
) -> Dict[str, int]:
    """Type name -> number of achievements the user published (any status)."""
    operation = "student_publication_stats"
    try:
        publisher = _require_identity(user_id, operation)
        records = await _fetch(
            gateway,
            ACHIEVEMENTS,
            AchievementRecord,
            columns=("id", "type_id"),
            filters=(eq("publisher_id", publisher),),
        )
        type_names = await _type_names(gateway) if any(r.type_id for r in records) else {}
    except Exception as exc:  # noqa: BLE001 - dashboards always get a renderable result
        _log_fallback(operation, user_id, exc)
        return {}
    return count_by_type(records, type_names)


async def get_student_score_trend(
    gateway: QueryGateway, user_id: Optional[str]
) -> List[ScorePoint]:
    """Every scored achievement of the user, oldest first, regardless of status."""
    operation = "student_score_trend"
    try:
        publisher = _require_identity(user_id, operation)
        records = await _fetch(
            gateway,
            ACHIEVEMENTS,
            AchievementRecord,
            columns=("score", "created_at"),
            filters=(eq("publisher_id", publisher), not_null("score")),
            order=Order("created_at"),
        )
    except Exception as exc:  # noqa: BLE001 - dashboards always get a renderable result
        _log_fallback(operation, user_id, exc)
        return []
    return [ScorePoint(score=r.score, date=r.created_at) for r in records if r.score is not None]


class StatisticsService:
    """
    Binds a gateway to the aggregator entry points.

    Parameters
    ----------
    gateway : QueryGateway
        Row store the statistics are computed from.
    """

    def __init__(self, gateway: QueryGateway) -> None:
        self.gateway = gateway

    async def student(self, user_id: Optional[str]) -> StatisticsResult:
        return await get_student_statistics(self.gateway, user_id)

    async def teacher(self, user_id: Optional[str]) -> StatisticsResult:
        return await get_teacher_statistics(self.gateway, user_id)

    async def teacher_students(self, teacher_id: Optional[str]) -> StudentPublications:
        return await get_teacher_student_stats(self.gateway, teacher_id)

    async def dashboard(self, teacher_id: Optional[str]) -> DashboardCounters:
        return await get_teacher_dashboard_stats(self.gateway, teacher_id)

    async def approvals(self, instructor_id: Optional[str]) -> ApprovalStats:
        return await get_approval_stats(self.gateway, instructor_id)

    async def pending_count(self, instructor_id: Optional[str]) -> int:
        return await get_pending_count(self.gateway, instructor_id)

    async def publications(self, user_id: Optional[str]) -> Dict[str, int]:
        return await get_student_publication_stats(self.gateway, user_id)

    async def score_trend(self, user_id: Optional[str]) -> List[ScorePoint]:
        return await get_student_score_trend(self.gateway, user_id)


__all__ = [
    "SCORE_BANDS",
    "StatisticsService",
    "attempt_label",
    "band_counts",
    "build_score_trend",
    "classify_score",
    "count_by_type",
    "get_approval_stats",
    "get_pending_count",
    "get_student_publication_stats",
    "get_student_score_trend",
    "get_student_statistics",
    "get_teacher_dashboard_stats",
    "get_teacher_statistics",
    "get_teacher_student_stats",
    "round_half_up",
    "student_fallback",
    "summarize_student",
    "tally_by_type_order",
    "teacher_fallback",
]
