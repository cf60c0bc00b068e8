"""Structured logging configuration for the school planner.

Environment variables:
    SP_LOG_FORMAT  -- ``json`` for structured JSON output, ``text`` for human-readable (default).
    SP_LOG_LEVEL   -- Python log level name (default: ``INFO``).
"""

from __future__ import annotations

import logging
import os
import traceback
from typing import Any

#: Record attributes promoted to top-level JSON fields when present.
STRUCTURED_FIELDS: tuple[str, ...] = (
    "request_id",
    "path",
    "method",
    "status_code",
    "duration_ms",
    "user_id",
    "role",
    "generation",
)


def _is_json_mode() -> bool:
    """Return True when structured JSON logging is requested."""
    return os.environ.get("SP_LOG_FORMAT", "text").lower() == "json"


def _get_log_level() -> int:
    """Return the numeric log level from SP_LOG_LEVEL (default INFO)."""
    name = os.environ.get("SP_LOG_LEVEL", "INFO").upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        return logging.INFO
    return numeric


class StructuredJsonFormatter(logging.Formatter):
    """JSON formatter that emits one JSON object per log line.

    Uses ``pythonjsonlogger`` under the hood but injects the planner
    specific fields (request and access-resolution context) when they are
    present on the LogRecord.
    """

    def __init__(self) -> None:
        super().__init__()
        from pythonjsonlogger.json import JsonFormatter

        self._inner = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        extras: dict[str, Any] = {}
        for key in STRUCTURED_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                extras[key] = value

        # Traceback goes into a structured field instead of free-form text.
        if record.exc_info and record.exc_info[1] is not None:
            extras["traceback"] = traceback.format_exception(*record.exc_info)
            record.exc_info = None
            record.exc_text = None

        for k, v in extras.items():
            setattr(record, k, v)

        return self._inner.format(record)


def setup_logging() -> None:
    """Configure the root logger according to SP_LOG_FORMAT and SP_LOG_LEVEL."""
    level = _get_log_level()
    root = logging.getLogger()
    root.setLevel(level)

    # Remove any existing handlers so we don't double-log during tests.
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if _is_json_mode():
        handler.setFormatter(StructuredJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))

    root.addHandler(handler)


def log_startup_info() -> None:
    """Emit a structured startup log line with access-control configuration."""
    import schoolplanner
    from schoolplanner.config import settings

    logger = logging.getLogger("schoolplanner")
    logger.info(
        "School planner access service started",
        extra={
            "version": schoolplanner.__version__,
            "storage_backend": os.environ.get("SP_STORAGE", settings.storage),
            "auth_mode": "supabase" if settings.supabase_jwt_secret else "dev",
            "resolution_timeout": settings.resolution_timeout,
            "platform_admin_override": settings.platform_admin_override,
        },
    )
