from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_DATA_DIR_ENV = "SENSOR_DATA_DIR"
_QUEUE_SIZE_ENV = "COORDINATOR_QUEUE_SIZE"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    data_dir: str
    queue_size: int
    log_level: str


def _read_data_dir(default: str) -> str:
    # Used verbatim as a filename prefix, so no stripping of separators.
    value = os.getenv(_DATA_DIR_ENV)
    if value is None:
        return default
    return value if value.strip() else default


def _read_queue_size(default: int) -> int:
    value = os.getenv(_QUEUE_SIZE_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


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
        data_dir=_read_data_dir("./tmp/readings/"),
        queue_size=_read_queue_size(0),
        log_level=_read_log_level("INFO"),
    )
