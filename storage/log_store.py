from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional

from models.records import Reading
from settings import get_settings
from storage.codec import decode, encode, sort_readings

logger = logging.getLogger(__name__)


class SensorLogStore:
    """Append-only text logs, one file per sensor.

    Not thread-safe on its own: every call is expected to come from the
    coordinator's worker thread.
    """

    def __init__(self, data_dir: str, encoding: str = "utf-8") -> None:
        self.data_dir = data_dir
        self.encoding = encoding

    def path_for(self, sensor_id: int) -> Path:
        # Plain concatenation keeps the legacy naming: "data/" + "7" -> "data/7".
        return Path(f"{self.data_dir}{sensor_id}")

    def append(self, sensor_id: int, readings: Iterable[Reading]) -> int:
        """Append readings in the given order and flush them to disk.

        Returns the number of lines written. Raises ``OSError`` when the log
        cannot be opened or written.
        """

        lines = [encode(reading) + "\n" for reading in readings]
        path = self.path_for(sensor_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding=self.encoding, newline="\n") as handle:
            handle.writelines(lines)
            handle.flush()
            os.fsync(handle.fileno())

        logger.debug(
            "Appended readings",
            extra={"sensor_id": sensor_id, "reading_count": len(lines), "path": str(path)},
        )
        return len(lines)

    def read_all(self, sensor_id: int) -> List[Reading]:
        """Return every stored reading for a sensor, sorted by timestamp.

        A log that cannot be opened reads as an empty history. Undecodable
        bytes become U+FFFD instead of failing the whole read.
        """

        path = self.path_for(sensor_id)
        try:
            handle = path.open("r", encoding=self.encoding, errors="replace")
        except FileNotFoundError:
            return []
        except OSError as exc:
            logger.warning(
                "Sensor log could not be opened, treating as empty",
                extra={"sensor_id": sensor_id, "path": str(path), "reason": str(exc)},
            )
            return []

        readings: List[Reading] = []
        with handle:
            for line in handle:
                if not line.strip():
                    continue
                readings.append(decode(line))
        return sort_readings(readings)


@lru_cache
def build_default_log_store(data_dir: Optional[str] = None) -> SensorLogStore:
    settings = get_settings()
    return SensorLogStore(data_dir=settings.data_dir if data_dir is None else data_dir)
