"""Socket.IO server wiring for realtime rooms."""
from __future__ import annotations

from typing import Any

import socketio

from ..core.config import settings
from ..services.chat import (
    EVENT_ADD_MESSAGE,
    EVENT_CREATE_ROOM,
    EVENT_JOIN_ROOM,
    EVENT_LEAVE_ROOM,
    EVENT_PAGINATE_ROOM,
    ChatCoordinator,
)

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=settings.socketio_cors_origins,
    always_connect=True,
    logger=False,
    engineio_logger=False,
)

coordinator = ChatCoordinator(
    sio,
    page_limit=settings.page_default_limit,
    max_page_limit=settings.page_max_limit,
)


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any = None) -> bool:
    # always_connect lets the Error event reach the client before a refusal.
    return await coordinator.handle_connect(sid, auth, environ)


@sio.event
async def disconnect(sid: str, reason: Any = None) -> None:
    await coordinator.handle_disconnect(sid)


@sio.on(EVENT_CREATE_ROOM)
async def create_room(sid: str, data: Any = None) -> None:
    await coordinator.dispatch(EVENT_CREATE_ROOM, sid, data)


@sio.on(EVENT_PAGINATE_ROOM)
async def paginate_room(sid: str, data: Any = None) -> None:
    await coordinator.dispatch(EVENT_PAGINATE_ROOM, sid, data)


@sio.on(EVENT_JOIN_ROOM)
async def join_room(sid: str, data: Any = None) -> None:
    await coordinator.dispatch(EVENT_JOIN_ROOM, sid, data)


@sio.on(EVENT_LEAVE_ROOM)
async def leave_room(sid: str, data: Any = None) -> None:
    await coordinator.dispatch(EVENT_LEAVE_ROOM, sid, data)


@sio.on(EVENT_ADD_MESSAGE)
async def add_message(sid: str, data: Any = None) -> None:
    await coordinator.dispatch(EVENT_ADD_MESSAGE, sid, data)
