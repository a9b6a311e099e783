from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.coordinator import build_default_coordinator
from storage.log_store import build_default_log_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    coordinator = build_default_coordinator()
    logger.info(
        "Serving sensor logs",
        extra={"path": coordinator.store.data_dir},
    )
    try:
        yield
    finally:
        coordinator.shutdown()
        build_default_coordinator.cache_clear()
        build_default_log_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sensor Readings Log",
        description="Time-series sensor readings persisted as append-only per-sensor logs.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
