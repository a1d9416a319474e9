from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from datastore.cassandra_session import shutdown_default_session
from logging_config import configure_logging
from services.readings import build_default_repository


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    build_default_repository()
    try:
        yield
    finally:
        build_default_repository.cache_clear()
        shutdown_default_session()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Vehicle Telemetry Search",
        description="Area, timeframe and per-vehicle searches over vehicle telemetry readings.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
