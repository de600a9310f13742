"""Process-wide logging setup for the API and the maintenance worker."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict

from app.core.context import get_request_id, get_user_id

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s user=%(user_id)s] %(name)s: %(message)s"

# Libraries that log every statement or HTTP call at INFO.
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "apscheduler.executors.default", "pypdf")

_configured = False


class RequestContextFilter(logging.Filter):
    """Stamp each record with the request and user bound to the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.user_id = get_user_id() or "-"
        return True


def build_logging_config(log_level: str) -> Dict[str, Any]:
    level = log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"context": {"()": RequestContextFilter}},
        "formatters": {"plain": {"format": LOG_FORMAT}},
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "plain",
                "filters": ["context"],
            }
        },
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        "root": {"level": level, "handlers": ["stderr"]},
    }


def configure_logging(*, log_level: str = "INFO") -> None:
    """Apply the logging config; repeated calls are ignored."""
    global _configured
    if _configured:
        return
    dictConfig(build_logging_config(log_level))
    _configured = True
    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
