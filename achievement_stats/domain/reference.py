"""
Static reference data used when the live tables cannot be read.
"""
from __future__ import annotations

from typing import List

from achievement_stats.domain.models import AchievementType

UNCLASSIFIED_LABEL = "unclassified"

# Seeded rows of the `achievement_types` table, in creation order.
DEFAULT_ACHIEVEMENT_TYPES: List[AchievementType] = [
    AchievementType(id="0cc2c0c3-00ec-4d9c-a8f3-f92f77189efb", name="Other"),
    AchievementType(id="3582cb28-b452-4495-bd5c-85ea0a2a575f", name="Web Development"),
    AchievementType(id="71010940-a9e7-493c-a785-af6efb2948c0", name="Data Analysis"),
    AchievementType(id="814df843-11f4-4a70-8e4f-2ba79a8ca360", name="Game Development"),
    AchievementType(id="9586ab13-63e6-43a8-8cb4-ee9d8db7bcfb", name="Mobile App"),
    AchievementType(id="9d05e374-6741-4575-9cf7-bce4e0d20849", name="Office App"),
    AchievementType(id="b962ef93-2b74-4499-a0be-3e4b0b6d6841", name="Creative Work"),
    AchievementType(id="e0a8ff2d-7b61-4e4b-959e-7a0f4d89429d", name="Artificial Intelligence"),
]

# Placeholder buckets shown on the student dashboard when nothing could be loaded.
STUDENT_PLACEHOLDER_LABELS: List[str] = [
    "Project Report",
    "Paper",
    "Software",
    "Lab Report",
    "Other",
]

PLACEHOLDER_TREND_POINTS = 3


def default_type_labels() -> List[str]:
    return [item.name for item in DEFAULT_ACHIEVEMENT_TYPES]


__all__ = [
    "UNCLASSIFIED_LABEL",
    "DEFAULT_ACHIEVEMENT_TYPES",
    "STUDENT_PLACEHOLDER_LABELS",
    "PLACEHOLDER_TREND_POINTS",
    "default_type_labels",
]
