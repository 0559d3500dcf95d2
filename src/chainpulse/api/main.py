"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from chainpulse import __version__
from chainpulse.api.dependencies import get_service
from chainpulse.api.routers import events, health, reports
from chainpulse.config import get_settings
from chainpulse.errors import StoreUnavailable
from chainpulse.logs import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    provider = app.dependency_overrides.get(get_service, get_service)
    service = provider()
    try:
        await service.open()
    except StoreUnavailable as exc:
        # Requests still degrade to safe defaults; the next operation retries the open.
        logger.warning("Analytics store unavailable at startup: %s", exc)
    try:
        yield
    finally:
        await service.close()


def create_app() -> FastAPI:
    configure_logging(get_settings().log_level)
    app = FastAPI(title="Chainpulse Analytics API", version=__version__, lifespan=lifespan)
    app.include_router(health.router, tags=["health"])
    app.include_router(events.router, prefix="/events", tags=["events"])
    app.include_router(reports.router, prefix="/reports", tags=["reports"])
    return app
