"""
Domain models for the achievement statistics core.

Row models mirror the portal tables (`achievements`, `achievement_types`,
`users`) and are validated at the gateway boundary, so the aggregators only
ever see typed values. The achievement status is normalised here: the store
holds either the numeric code or the string tag, and `normalize_status` is the
one place the two encodings are reconciled.

Result models serialise with camelCase aliases, matching what the dashboard
views consume.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AchievementStatus(IntEnum):
    DRAFT = 0
    PENDING = 1
    APPROVED = 2
    REJECTED = 3


class UserRole(IntEnum):
    STUDENT = 1
    TEACHER = 2
    ADMIN = 3


_STATUS_TAGS: Dict[str, AchievementStatus] = {
    status.name.lower(): status for status in AchievementStatus
}


def normalize_status(raw: Any) -> Optional[AchievementStatus]:
    """
    Map a stored status value onto `AchievementStatus`.

    Accepts the smallint code (``2``), its string form (``"2"``) and the tag
    (``"approved"``, case-insensitive). Anything unrecognised yields None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, AchievementStatus):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, int):
        try:
            return AchievementStatus(raw)
        except ValueError:
            return None
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text.isdigit():
            return normalize_status(int(text))
        return _STATUS_TAGS.get(text)
    return None


def is_passed(raw: Any) -> bool:
    """True when the stored status denotes approval, in either encoding."""
    return normalize_status(raw) is AchievementStatus.APPROVED


def _as_str(value: Any) -> Optional[str]:
    # asyncpg hands back uuid.UUID for uuid columns
    return None if value is None else str(value)


class _Row(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class AchievementRecord(_Row):
    """
    Representation of a row in the `achievements` table.

    Only the columns the aggregators read are modelled; queries may project a
    subset, so every field is optional.
    """

    id: Optional[str] = Field(None, description="Primary key (uuid).")
    score: Optional[float] = Field(None, description="Teacher-assigned score, 0-100.")
    status: Optional[AchievementStatus] = Field(None, description="Normalised status.")
    type_id: Optional[str] = Field(None, description="Reference to achievement_types.id.")
    publisher_id: Optional[str] = Field(None, description="Student who filed the achievement.")
    instructor_id: Optional[str] = Field(None, description="Supervising teacher.")
    created_at: Optional[datetime] = Field(None, description="Row creation timestamp.")

    @field_validator("id", "type_id", "publisher_id", "instructor_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Optional[str]:
        return _as_str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Optional[AchievementStatus]:
        return normalize_status(value)

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def passed(self) -> bool:
        return self.status is AchievementStatus.APPROVED


class AchievementType(_Row):
    """Representation of a row in the `achievement_types` table."""

    id: str
    name: str
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        return _as_str(value)


class UserRecord(_Row):
    """Representation of a row in the `users` table."""

    id: str
    role: Optional[UserRole] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        return _as_str(value)


class _Result(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Dump with the camelCase keys the dashboards expect."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class PublicationByType(_Result):
    labels: List[str] = Field(default_factory=list)
    data: List[int] = Field(default_factory=list)


class ScoreTrend(_Result):
    labels: List[str] = Field(default_factory=list)
    scores: List[float] = Field(default_factory=list)


class StudentPublications(_Result):
    """Per-type score-band counts; the four count lists align with `labels`."""

    excellent: List[int] = Field(default_factory=list)
    good: List[int] = Field(default_factory=list)
    average: List[int] = Field(default_factory=list)
    pass_: List[int] = Field(default_factory=list, alias="pass")
    labels: List[str] = Field(default_factory=list)

    @classmethod
    def zeros(cls, labels: List[str]) -> "StudentPublications":
        return cls(
            excellent=[0] * len(labels),
            good=[0] * len(labels),
            average=[0] * len(labels),
            pass_=[0] * len(labels),
            labels=list(labels),
        )


class StudentStats(_Result):
    total_projects: int = 0
    passed_projects: int = 0
    average_score: float = 0.0
    completion_rate: float = 0.0


class StatisticsResult(_Result):
    """
    Dashboard statistics for one user.

    `student_stats` is only populated on the student view.
    """

    publication_by_type: PublicationByType = Field(default_factory=PublicationByType)
    score_trend: ScoreTrend = Field(default_factory=ScoreTrend)
    student_publications: StudentPublications = Field(default_factory=StudentPublications)
    student_stats: Optional[StudentStats] = None


class DashboardCounters(_Result):
    pending_count: int = 0
    published_count: int = 0
    student_count: int = 0
    project_count: int = 0


class ApprovalStats(_Result):
    pending_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0
    total_count: int = 0


class ScorePoint(_Result):
    score: float
    date: Optional[datetime] = None


__all__ = [
    "AchievementStatus",
    "UserRole",
    "normalize_status",
    "is_passed",
    "AchievementRecord",
    "AchievementType",
    "UserRecord",
    "PublicationByType",
    "ScoreTrend",
    "StudentPublications",
    "StudentStats",
    "StatisticsResult",
    "DashboardCounters",
    "ApprovalStats",
    "ScorePoint",
]
