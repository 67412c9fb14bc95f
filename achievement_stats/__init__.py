"""
Achievement statistics - dashboard aggregation for the department achievement portal.

Students file achievements (reports, papers, projects) that teachers review and
score. This package computes the dashboard statistics shown to both roles:

- Student totals, average approved score, completion rate and score trend
- Teacher publication counts per achievement type
- Score-band distribution of student work per type
- Teacher home-page counters and the review queue

Data is read through a `QueryGateway` (in-memory or PostgreSQL); every entry
point returns a well-formed result, falling back to zeroed placeholders when
the store cannot be read.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from achievement_stats.aggregator import (
    StatisticsService,
    get_approval_stats,
    get_pending_count,
    get_student_publication_stats,
    get_student_score_trend,
    get_student_statistics,
    get_teacher_dashboard_stats,
    get_teacher_statistics,
    get_teacher_student_stats,
)
from achievement_stats.config import Settings, get_settings
from achievement_stats.domain.models import (
    AchievementStatus,
    DashboardCounters,
    StatisticsResult,
    StudentPublications,
    normalize_status,
)
from achievement_stats.gateway import InMemoryGateway, PostgresGateway, QueryGateway
from achievement_stats.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Aggregation
    "StatisticsService",
    "get_student_statistics",
    "get_teacher_statistics",
    "get_teacher_student_stats",
    "get_teacher_dashboard_stats",
    "get_approval_stats",
    "get_pending_count",
    "get_student_publication_stats",
    "get_student_score_trend",
    # Domain
    "AchievementStatus",
    "DashboardCounters",
    "StatisticsResult",
    "StudentPublications",
    "normalize_status",
    # Gateways
    "QueryGateway",
    "InMemoryGateway",
    "PostgresGateway",
    # Logging
    "configure_logging",
    "get_logger",
]
