"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from models.records import MAX_SENSOR_ID, Reading, ReadingBatch


class ReadingIn(BaseModel):
    """One observation submitted by a client."""

    model_config = ConfigDict(strict=True)

    timestamp: str = Field(
        ...,
        pattern=r"^\S+$",
        description="Lexicographically sortable timestamp, e.g. ISO-8601. No whitespace.",
    )
    value: float = Field(..., allow_inf_nan=False)


class ReadingBatchIn(BaseModel):
    """Request body for appending readings to one sensor."""

    model_config = ConfigDict(strict=True)

    sensor_id: int = Field(..., ge=0, le=MAX_SENSOR_ID)
    readings: List[ReadingIn] = Field(default_factory=list)

    def to_domain(self) -> ReadingBatch:
        return ReadingBatch(
            sensor_id=self.sensor_id,
            readings=[Reading(timestamp=r.timestamp, value=r.value) for r in self.readings],
        )


class ReadingOut(BaseModel):
    """One stored observation, returned as it was read from the log."""

    timestamp: str
    value: float


class ReadingBatchOut(BaseModel):
    """A sensor's full history in timestamp order."""

    sensor_id: int
    readings: List[ReadingOut] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, batch: ReadingBatch) -> "ReadingBatchOut":
        return cls(
            sensor_id=batch.sensor_id,
            readings=[ReadingOut(timestamp=r.timestamp, value=r.value) for r in batch.readings],
        )


class WriteAcknowledgement(BaseModel):
    """Returned once a batch has been appended to the sensor log."""

    sensor_id: int
    accepted: int = Field(..., ge=0, description="Number of readings written.")


class HelloResponse(BaseModel):
    message: str


class HealthStatus(BaseModel):
    status: str
    coordinator_running: bool
    pending_requests: int = Field(..., ge=0)
