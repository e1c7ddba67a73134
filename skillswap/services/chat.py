"""Realtime room coordinator.

Authenticates socket connections, keeps presence in a
:class:`~skillswap.services.presence.PresenceRegistry`, and turns the
``createRoom`` / ``paginateRoom`` / ``joindRoom`` / ``leaveRoom`` /
``addMessage`` events into store calls plus targeted emits. It only talks to
the transport through an emitter with ``emit(event, data, to=...)`` and
``disconnect(sid)``, which a ``socketio.AsyncServer`` already provides.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Protocol

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import (
    ForbiddenError,
    NotFoundError,
    ProtocolError,
    SkillSwapError,
    UnauthorizedError,
)
from ..core.pagination import ClientPage, PageRequest, first_page, from_client, page_payload
from ..core.security import AuthVerifier, verifier as default_verifier
from ..repositories import messages as messages_repo
from ..repositories import rooms as rooms_repo
from ..repositories import users as users_repo
from ..schemas.chat import EntityRef, MessageDraft, MessageOut, RoomDraft, RoomOut
from ..schemas.common import UserSummary
from .presence import PresenceRegistry

logger = logging.getLogger(__name__)

EVENT_ROOMS = "rooms"
EVENT_MESSAGES = "messages"
EVENT_MESSAGE_ADDED = "messageAdded"
EVENT_ERROR = "Error"

EVENT_CREATE_ROOM = "createRoom"
EVENT_PAGINATE_ROOM = "paginateRoom"
EVENT_JOIN_ROOM = "joindRoom"
EVENT_LEAVE_ROOM = "leaveRoom"
EVENT_ADD_MESSAGE = "addMessage"


class Emitter(Protocol):
    async def emit(self, event: str, data: Any = None, to: str | None = None, **kwargs: Any) -> None: ...

    async def disconnect(self, sid: str, **kwargs: Any) -> None: ...


SessionFactory = Callable[[], AsyncSession]


def extract_token(auth: Any, environ: dict[str, Any] | None = None) -> str | None:
    """Pull the bearer token from ``handshake.auth.token`` or the Authorization header."""

    if isinstance(auth, dict):
        token = auth.get("token")
        if isinstance(token, str) and token:
            return token

    if isinstance(environ, dict):
        header = environ.get("HTTP_AUTHORIZATION")
        if isinstance(header, str) and header.lower().startswith("bearer "):
            return header[7:].strip() or None
    return None


def _parse(model: type[BaseModel], data: Any, event: str) -> Any:
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as exc:
        raise ProtocolError(f"Malformed {event} payload: {exc.error_count()} error(s)") from exc


class ChatCoordinator:
    """Socket event handlers backed by the store and the presence registry."""

    def __init__(
        self,
        emitter: Emitter,
        session_factory: SessionFactory | None = None,
        *,
        verifier: AuthVerifier | None = None,
        presence: PresenceRegistry | None = None,
        page_limit: int = 10,
        max_page_limit: int = 100,
    ) -> None:
        self._emitter = emitter
        self._session_factory = session_factory
        self._verifier = verifier or default_verifier
        self.presence = presence or PresenceRegistry()
        self._page_limit = page_limit
        self._max_page_limit = max_page_limit
        self._users: Dict[str, UserSummary] = {}
        self._socket_locks: Dict[str, asyncio.Lock] = {}
        self._handlers: Dict[str, Callable[[str, Any], Awaitable[None]]] = {
            EVENT_CREATE_ROOM: self.create_room,
            EVENT_PAGINATE_ROOM: self.paginate_room,
            EVENT_JOIN_ROOM: self.join_room,
            EVENT_LEAVE_ROOM: self.leave_room,
            EVENT_ADD_MESSAGE: self.add_message,
        }

    def _session(self) -> AsyncSession:
        if self._session_factory is None:
            from ..db.session import SessionLocal

            self._session_factory = SessionLocal
        return self._session_factory()

    async def startup(self) -> None:
        """Start from empty presence; nothing from a previous process is live."""

        self._users.clear()
        self._socket_locks.clear()
        await self.presence.reset()

    def user_for(self, sid: str) -> UserSummary | None:
        return self._users.get(sid)

    def _require_user(self, sid: str) -> UserSummary:
        user = self._users.get(sid)
        if user is None:
            raise UnauthorizedError("Socket is not authenticated")
        return user

    # connection lifecycle

    async def handle_connect(self, sid: str, auth: Any = None, environ: dict[str, Any] | None = None) -> bool:
        """Authenticate a new socket and push its first page of rooms.

        Returns False when the connection must be refused; the caller is
        expected to drop the socket.
        """

        try:
            claims = self._verifier.verify(extract_token(auth, environ))
            async with self._session() as session:
                user = await users_repo.get_by_id(session, claims.subject_id)
                if user is None:
                    raise UnauthorizedError("Unknown token subject", code="USER_NOT_FOUND")

                summary = UserSummary.model_validate(user)
                self._users[sid] = summary
                await self.presence.connect(sid, summary.id)
                payload = await self._rooms_page(session, summary.id, first_page(self._page_limit))
        except UnauthorizedError as exc:
            logger.info("Socket refused: %s", exc.code, extra={"socket_id": sid, "error_code": exc.code})
            await self._forget(sid)
            await self._send_error(sid, exc)
            return False
        except Exception:  # noqa: BLE001
            logger.exception("Socket connect failed", extra={"socket_id": sid})
            await self._forget(sid)
            await self._send_error(sid, UnauthorizedError("Unauthorized"))
            return False

        logger.info("Socket connected", extra={"socket_id": sid, "user_id": summary.id})
        await self._emit(EVENT_ROOMS, payload, sid)
        return True

    async def handle_disconnect(self, sid: str) -> None:
        user = self._users.get(sid)
        try:
            logger.info(
                "Socket disconnected",
                extra={"socket_id": sid, "user_id": user.id if user else None},
            )
        finally:
            await self._forget(sid)

    async def _forget(self, sid: str) -> None:
        self._users.pop(sid, None)
        self._socket_locks.pop(sid, None)
        await self.presence.disconnect(sid)

    # event dispatch

    async def dispatch(self, event: str, sid: str, data: Any = None) -> None:
        """Run one inbound event, serialised per socket.

        Protocol and auth violations drop the socket; every other failure is
        logged and the client simply gets no event.
        """

        handler = self._handlers.get(event)
        if handler is None:
            logger.warning("Unknown socket event %s", event, extra={"socket_id": sid, "event": event})
            return

        lock = self._socket_locks.setdefault(sid, asyncio.Lock())
        async with lock:
            try:
                await handler(sid, data)
            except (ProtocolError, UnauthorizedError) as exc:
                logger.warning(
                    "Dropping socket after %s: %s",
                    event,
                    exc.message,
                    extra={"socket_id": sid, "event": event, "error_code": exc.code},
                )
                await self._send_error(sid, exc)
                await self._drop(sid)
            except SkillSwapError as exc:
                logger.info(
                    "Ignored %s: %s",
                    event,
                    exc.message,
                    extra={"socket_id": sid, "event": event, "error_code": exc.code},
                )
            except Exception:  # noqa: BLE001
                logger.exception("Socket event %s failed", event, extra={"socket_id": sid, "event": event})

    # handlers

    async def create_room(self, sid: str, data: Any) -> None:
        creator = self._require_user(sid)
        draft: RoomDraft = _parse(RoomDraft, data, EVENT_CREATE_ROOM)

        participant_ids = {ref.id for ref in draft.participants}
        participant_ids.add(creator.id)

        async with self._session() as session:
            users = await users_repo.get_many(session, participant_ids)
            missing = participant_ids - {user.id for user in users}
            if missing:
                raise ProtocolError(f"Unknown participants: {', '.join(sorted(missing))}")

            room = await rooms_repo.create_room(session, participants=users)
            await session.commit()
            member_ids = sorted(user.id for user in room.participants)
            logger.info("Room created", extra={"room_id": room.id, "user_id": creator.id})

            for member_id in member_ids:
                connections = await self.presence.connections_for_user(member_id)
                if not connections:
                    continue
                payload = await self._rooms_page(session, member_id, first_page(self._page_limit))
                for connection in connections:
                    await self._emit(EVENT_ROOMS, payload, connection.socket_id)

    async def paginate_room(self, sid: str, data: Any) -> None:
        user = self._require_user(sid)
        client_page: ClientPage = _parse(ClientPage, data, EVENT_PAGINATE_ROOM)
        page = from_client(client_page, self._max_page_limit)

        async with self._session() as session:
            payload = await self._rooms_page(session, user.id, page)
        await self._emit(EVENT_ROOMS, payload, sid)

    async def join_room(self, sid: str, data: Any) -> None:
        user = self._require_user(sid)
        ref: EntityRef = _parse(EntityRef, data, EVENT_JOIN_ROOM)

        async with self._session() as session:
            room = await rooms_repo.get_by_id(session, ref.id)
            if room is None:
                raise NotFoundError("Room not found", code="ROOM_NOT_FOUND")
            if not room.has_participant(user.id):
                raise ForbiddenError("Not a participant of this room", code="ROOM_ACCESS_DENIED")

            result = await messages_repo.list_recent_for_room(
                session, room_id=room.id, page=first_page(self._page_limit)
            )
            payload = page_payload(result, [MessageOut.from_message(message) for message in result.items])

        joined = await self.presence.join(sid, user.id, room.id)
        if joined is None:
            return
        await self._emit(EVENT_MESSAGES, payload, sid)

    async def leave_room(self, sid: str, data: Any = None) -> None:
        self._require_user(sid)
        await self.presence.leave(sid)

    async def add_message(self, sid: str, data: Any) -> None:
        sender = self._require_user(sid)
        draft: MessageDraft = _parse(MessageDraft, data, EVENT_ADD_MESSAGE)
        if draft.room is None:
            raise ProtocolError("Room id missing in message")

        async with self._session() as session:
            room = await rooms_repo.get_by_id(session, draft.room.id)
            if room is None:
                raise ProtocolError("Room not found")
            if not room.has_participant(sender.id):
                raise ForbiddenError("Not a participant of this room", code="ROOM_ACCESS_DENIED")

            message = await messages_repo.create_message(
                session, room_id=room.id, sender_id=sender.id, content=draft.content
            )
            await session.commit()
            payload = MessageOut.from_message(message).model_dump(mode="json", by_alias=True)

        for joined in await self.presence.joined_for_room(room.id):
            await self._emit(EVENT_MESSAGE_ADDED, payload, joined.socket_id)

    # helpers

    async def _rooms_page(self, session: AsyncSession, user_id: str, page: PageRequest) -> dict:
        result = await rooms_repo.list_for_user(session, user_id=user_id, page=page)
        return page_payload(result, [RoomOut.model_validate(room) for room in result.items])

    async def _emit(self, event: str, payload: Any, sid: str) -> None:
        try:
            await self._emitter.emit(event, payload, to=sid)
        except Exception:  # noqa: BLE001
            logger.warning("Emit of %s failed", event, exc_info=True, extra={"socket_id": sid, "event": event})

    async def _send_error(self, sid: str, exc: SkillSwapError) -> None:
        await self._emit(EVENT_ERROR, exc.to_response()["error"], sid)

    async def _drop(self, sid: str) -> None:
        try:
            await self._emitter.disconnect(sid)
        finally:
            await self._forget(sid)
