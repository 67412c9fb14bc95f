"""
Cross-cutting helpers for the achievement statistics core.
"""

from achievement_stats.utils.logging import (
    JsonFormatter,
    configure_from_settings,
    configure_logging,
    get_logger,
)

__all__ = [
    "JsonFormatter",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
]
