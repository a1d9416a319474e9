"""Logging setup for the search service.

Log records carry search context through ``extra=``; the formatter appends
it as ``key=value`` pairs so a composed query can be traced back to the
operation and vehicle that produced it.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Iterable, Optional, Sequence

from settings import get_settings

SEARCH_CONTEXT_KEYS = (
    "operation",
    "vehicle_id",
    "table",
    "row_count",
    "contact_points",
    "query",
)
DEFAULT_MAX_VALUE_LENGTH = 400
DRIVER_LOGGER = "cassandra"

_configured = False


class ContextualFormatter(logging.Formatter):
    """Append known ``extra`` attributes, shortening overly long values."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        style: str = "%",
        extra_keys: Optional[Iterable[str]] = None,
        max_value_length: Optional[int] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or SEARCH_CONTEXT_KEYS)
        self._max_value_length = max_value_length

    def _shorten(self, value: Any) -> str:
        text = str(value)
        limit = self._max_value_length
        if limit is None or len(text) <= limit:
            return text
        return f"{text[:limit]}...(+{len(text) - limit} chars)"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = [
            f"{key}={self._shorten(getattr(record, key))}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        ]
        return f"{message} | {' '.join(context)}" if context else message


def build_logging_config(
    level: str | int,
    driver_level: str | int,
    max_value_length: Optional[int] = DEFAULT_MAX_VALUE_LENGTH,
) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "search": {
                "()": "logging_config.ContextualFormatter",
                "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
                "extra_keys": list(SEARCH_CONTEXT_KEYS),
                "max_value_length": max_value_length,
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "search",
            }
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {DRIVER_LOGGER: {"level": driver_level}},
    }


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging once."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    dictConfig(
        build_logging_config(
            level if level is not None else settings.log_level,
            settings.driver_log_level,
        )
    )
    _configured = True
