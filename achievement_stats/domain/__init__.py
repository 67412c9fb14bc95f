"""
Domain package for the achievement statistics core.

Exports the row models, status normalisation, result models and the static
reference data used by the aggregators. Keep this package focused on data
definitions and validation concerns.
"""

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
    is_passed,
    normalize_status,
)
from achievement_stats.domain.reference import (
    DEFAULT_ACHIEVEMENT_TYPES,
    UNCLASSIFIED_LABEL,
    default_type_labels,
)

__all__ = [
    "AchievementRecord",
    "AchievementStatus",
    "AchievementType",
    "ApprovalStats",
    "DashboardCounters",
    "PublicationByType",
    "ScorePoint",
    "ScoreTrend",
    "StatisticsResult",
    "StudentPublications",
    "StudentStats",
    "UserRecord",
    "UserRole",
    "is_passed",
    "normalize_status",
    "DEFAULT_ACHIEVEMENT_TYPES",
    "UNCLASSIFIED_LABEL",
    "default_type_labels",
]
