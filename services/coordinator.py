"""Single-worker serialization of all sensor log access."""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Union

from models.records import ReadingBatch
from settings import get_settings
from storage.log_store import SensorLogStore, build_default_log_store

logger = logging.getLogger(__name__)


class WriteError(Exception):
    """A reading batch could not be appended to its sensor log."""

    def __init__(self, sensor_id: int, message: str) -> None:
        super().__init__(message)
        self.sensor_id = sensor_id


class CoordinatorClosedError(RuntimeError):
    """Raised when submitting to a coordinator that has been shut down."""


@dataclass
class ReadRequest:
    sensor_id: int
    reply: Future = field(default_factory=Future)


@dataclass
class WriteRequest:
    batch: ReadingBatch
    reply: Future = field(default_factory=Future)


Request = Union[ReadRequest, WriteRequest]

_STOP = object()


class ReadingCoordinator:
    """Owns the log store and runs every read and write one at a time.

    Reads and writes share one FIFO queue, so requests are served strictly in
    submission order whatever their kind. A single worker thread drains the
    queue, and each caller blocks on the future attached to its own request.
    """

    def __init__(self, store: SensorLogStore, queue_size: int = 0) -> None:
        self.store = store
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=queue_size)
        self._closed = False
        self._state_lock = threading.Lock()
        self._worker = threading.Thread(
            target=self._run, name="reading-coordinator", daemon=True
        )
        self._worker.start()

    @property
    def is_running(self) -> bool:
        return self._worker.is_alive()

    @property
    def pending_requests(self) -> int:
        return self._queue.qsize()

    def submit_read(self, sensor_id: int) -> ReadingBatch:
        """Return the full sorted history of a sensor.

        A sensor that was never written yields an empty batch.
        """
        request = ReadRequest(sensor_id=sensor_id)
        self._enqueue(request)
        return request.reply.result()

    def submit_write(self, batch: ReadingBatch) -> None:
        """Append a batch to its sensor log and wait until it is on disk."""
        request = WriteRequest(batch=batch)
        self._enqueue(request)
        try:
            request.reply.result()
        except OSError as exc:
            raise WriteError(
                batch.sensor_id, f"Failed to write readings for sensor {batch.sensor_id}: {exc}"
            ) from exc

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting requests; queued work is still completed first."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        if wait:
            self._worker.join()

    def _enqueue(self, request: Request) -> None:
        with self._state_lock:
            if self._closed:
                raise CoordinatorClosedError("Reading coordinator is shut down.")
            # Held across put so nothing can be queued behind the stop marker.
            self._queue.put(request)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    logger.info("Reading coordinator stopped")
                    return
                self._handle(item)  # type: ignore[arg-type]
            finally:
                self._queue.task_done()

    def _handle(self, request: Request) -> None:
        if not request.reply.set_running_or_notify_cancel():
            return

        start_time = time.perf_counter()
        if isinstance(request, ReadRequest):
            operation, sensor_id = "read", request.sensor_id
        else:
            operation, sensor_id = "write", request.batch.sensor_id

        try:
            if isinstance(request, ReadRequest):
                readings = self.store.read_all(request.sensor_id)
                result: object = ReadingBatch(sensor_id=request.sensor_id, readings=readings)
                count = len(readings)
            else:
                count = self.store.append(request.batch.sensor_id, request.batch.readings)
                result = None
        except Exception as exc:
            logger.error(
                "Sensor log operation failed",
                extra={
                    "operation": operation,
                    "sensor_id": sensor_id,
                    "reason": str(exc),
                    "pending": self.pending_requests,
                },
            )
            request.reply.set_exception(exc)
            return

        logger.debug(
            "Sensor log operation completed",
            extra={
                "operation": operation,
                "sensor_id": sensor_id,
                "reading_count": count,
                "pending": self.pending_requests,
                "duration_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        request.reply.set_result(result)


@lru_cache
def build_default_coordinator(queue_size: Optional[int] = None) -> ReadingCoordinator:
    """Factory that wires the coordinator with the configured log store."""
    settings = get_settings()
    size = settings.queue_size if queue_size is None else queue_size
    return ReadingCoordinator(store=build_default_log_store(), queue_size=size)
