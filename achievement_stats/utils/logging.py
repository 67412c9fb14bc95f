"""
Logging setup for the achievement statistics core.

Aggregators log every fallback they serve with the operation name, the
requesting user id and the underlying error, so a dashboard that shows
placeholder data can be traced back to the failing query. Records go to
stderr, either as readable lines or as one JSON object per line when
LOG_JSON is set.

Usage:
    from achievement_stats.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=True)
    log = get_logger(__name__)
    log.warning("fallback served", extra={"operation": "teacher_statistics"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

if TYPE_CHECKING:
    from achievement_stats.config import Settings

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

# Driver loggers that are chatty at DEBUG/INFO.
NOISY_LOGGERS = ("asyncio", "asyncpg", "psycopg")


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as a single JSON line."""
    payload: Dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key not in _RESERVED_ATTRS:
            payload[key] = value
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Parameters
    ----------
    level : str
        Root level name ("DEBUG", "INFO", "WARNING", ...).
    json_logs : bool
        Emit JSON lines instead of the pipe-separated console format.
    quiet : Iterable[str]
        Logger names held at WARNING regardless of `level`.
    """
    level = level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in quiet},
            "root": {"handlers": ["stderr"], "level": level},
        }
    )


def configure_from_settings(settings: "Settings") -> None:
    """Apply LOG_LEVEL and LOG_JSON."""
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["configure_from_settings", "configure_logging", "get_logger", "JsonFormatter", "NOISY_LOGGERS"]
