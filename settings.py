from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple


_CONTACT_POINTS_ENV = "CASSANDRA_CONTACT_POINTS"
_PORT_ENV = "CASSANDRA_PORT"
_KEYSPACE_ENV = "VEHICLE_KEYSPACE"
_LIST_LIMIT_ENV = "READING_LIST_LIMIT"
_ESCAPE_FILTERS_ENV = "ESCAPE_SEARCH_FILTERS"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_DRIVER_LOG_LEVEL_ENV = "DRIVER_LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    contact_points: Tuple[str, ...]
    port: int
    keyspace: str
    list_limit: int
    escape_filters: bool
    log_level: str
    driver_log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_contact_points(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_CONTACT_POINTS_ENV)
    if value is None:
        return default
    points = tuple(part.strip() for part in value.split(",") if part.strip())
    return points or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if not candidate:
        return default
    return candidate in _TRUTHY


def _read_log_level(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        contact_points=_read_contact_points(("127.0.0.1",)),
        port=_read_positive_int(_PORT_ENV, 9042),
        keyspace=_read_str_env(_KEYSPACE_ENV, "datastax"),
        list_limit=_read_positive_int(_LIST_LIMIT_ENV, 100),
        escape_filters=_read_flag(_ESCAPE_FILTERS_ENV, False),
        log_level=_read_log_level(_LOG_LEVEL_ENV, "INFO"),
        driver_log_level=_read_log_level(_DRIVER_LOG_LEVEL_ENV, "WARNING"),
    )
