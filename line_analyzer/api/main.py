"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from line_analyzer.api.routes import events, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler.

    Validates configuration at startup; a missing required value aborts the
    process before any event is accepted.
    """

    from line_analyzer.api.services.state import get_settings

    settings = get_settings()
    logger.info("Writing observations to %s.%s", settings.project_id, settings.dataset)
    yield


app = FastAPI(title="Line Analyzer", lifespan=lifespan)

app.include_router(health.router)
app.include_router(events.router)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("line_analyzer.api.main:app", host="0.0.0.0", port=8080)
