from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_MIN_INTERVAL_ENV = "STATION_MIN_INTERVAL_SECONDS"
_AVERAGE_WINDOW_ENV = "STATION_AVERAGE_WINDOW"
_SNAPSHOT_PATH_ENV = "STATION_SNAPSHOT_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    min_interval_seconds: int
    average_window: int
    snapshot_path: Optional[str]
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


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


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        min_interval_seconds=_read_positive_int(_MIN_INTERVAL_ENV, 3600),
        average_window=_read_positive_int(_AVERAGE_WINDOW_ENV, 24),
        snapshot_path=_read_optional_env(_SNAPSHOT_PATH_ENV, None),
        log_level=_read_log_level("INFO"),
    )
