"""HTTP route definitions for the service."""

from __future__ import annotations

import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from app.schemas import (
    HealthStatus,
    HelloResponse,
    ReadingBatchIn,
    ReadingBatchOut,
    WriteAcknowledgement,
)
from models.records import MAX_SENSOR_ID
from services.coordinator import (
    CoordinatorClosedError,
    ReadingCoordinator,
    WriteError,
    build_default_coordinator,
)

router = APIRouter()

_SENSOR_ID_PATTERN = re.compile(r"[0-9]+")


def get_coordinator() -> ReadingCoordinator:
    return build_default_coordinator()


def _parse_sensor_id(raw: str) -> int:
    if not _SENSOR_ID_PATTERN.fullmatch(raw):
        raise ValueError(raw)
    sensor_id = int(raw)
    if sensor_id > MAX_SENSOR_ID:
        raise ValueError(raw)
    return sensor_id


def _unavailable(exc: CoordinatorClosedError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(exc),
    )


@router.get(
    "/readings",
    response_model=ReadingBatchOut,
    summary="Fetch every stored reading for a sensor, ordered by timestamp.",
)
async def get_readings(
    sensor_id: Optional[str] = Query(None, description="Unsigned 32-bit sensor id."),
    coordinator: ReadingCoordinator = Depends(get_coordinator),
) -> ReadingBatchOut:
    if not sensor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error: sensor_id not provided",
        )
    try:
        parsed = _parse_sensor_id(sensor_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid sensor id",
        ) from exc

    try:
        batch = await run_in_threadpool(coordinator.submit_read, parsed)
    except CoordinatorClosedError as exc:
        raise _unavailable(exc) from exc
    return ReadingBatchOut.from_domain(batch)


@router.post(
    "/readings",
    status_code=status.HTTP_201_CREATED,
    response_model=WriteAcknowledgement,
    summary="Append a batch of readings to a sensor log.",
)
async def post_readings(
    request: Request,
    coordinator: ReadingCoordinator = Depends(get_coordinator),
) -> WriteAcknowledgement:
    body = await request.body()
    try:
        payload = ReadingBatchIn.model_validate_json(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error: malformed request",
        ) from exc

    batch = payload.to_domain()
    try:
        await run_in_threadpool(coordinator.submit_write, batch)
    except WriteError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error writing readings",
        ) from exc
    except CoordinatorClosedError as exc:
        raise _unavailable(exc) from exc
    return WriteAcknowledgement(sensor_id=batch.sensor_id, accepted=len(batch.readings))


@router.get(
    "/hello",
    response_model=HelloResponse,
    summary="Greeting endpoint used as a connectivity check.",
)
async def hello(name: Optional[str] = Query(None)) -> HelloResponse:
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error: name not provided",
        )
    return HelloResponse(message=f"Hello {name}")


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    coordinator: ReadingCoordinator = Depends(get_coordinator),
) -> HealthStatus:
    running = coordinator.is_running
    return HealthStatus(
        status="ok" if running else "degraded",
        coordinator_running=running,
        pending_requests=coordinator.pending_requests,
    )


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
