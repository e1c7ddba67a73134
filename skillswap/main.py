"""FastAPI application for the campus skill-exchange service."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .core.config import settings
from .core.error_handlers import register_error_handlers
from .core.logging_config import setup_logging
from .db.session import create_schema, engine
from .routers import notifications, requests
from .routers.chat import coordinator, sio

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    setup_logging(settings.log_level, settings.log_format)
    if settings.database_create_all:
        await create_schema()
    await coordinator.startup()
    logger.info("SkillSwap API started (%s)", settings.app_env)
    try:
        yield
    finally:
        await engine.dispose()


app = FastAPI(title="SkillSwap API", version="0.1.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_error_handlers(app)

app.include_router(requests.router, prefix="/requests", tags=["requests"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Simple liveness probe."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)


asgi_app = socketio.ASGIApp(sio, other_asgi_app=app, socketio_path=settings.socketio_path)
