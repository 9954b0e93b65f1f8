from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.station import build_default_station


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    station = build_default_station()
    station.load_snapshot()
    try:
        yield
    finally:
        station.shutdown()
        build_default_station.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Temperature Station",
        description="Per-city temperature history with ordering and spacing rules.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
