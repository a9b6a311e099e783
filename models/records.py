"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

MAX_SENSOR_ID = 2**32 - 1


@dataclass(frozen=True, slots=True)
class Reading:
    """A single (timestamp, value) observation.

    The timestamp is opaque and ordered lexicographically, so callers should
    send a sortable format such as ISO-8601.
    """

    timestamp: str
    value: float


@dataclass(slots=True)
class ReadingBatch:
    """Readings for one sensor, submitted or returned together."""

    sensor_id: int
    readings: List[Reading] = field(default_factory=list)
