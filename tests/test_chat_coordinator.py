"""Tests for the realtime room coordinator."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from skillswap.models.message import Message
from skillswap.repositories import messages as messages_repo
from skillswap.services.chat import ChatCoordinator, extract_token


class RecordingEmitter:
    """Stand-in for ``socketio.AsyncServer`` that records outbound traffic."""

    def __init__(self) -> None:
        self.emitted: list[tuple[str, object, str | None]] = []
        self.disconnected: list[str] = []

    async def emit(self, event, data=None, to=None, **kwargs) -> None:
        self.emitted.append((event, data, to))

    async def disconnect(self, sid, **kwargs) -> None:
        self.disconnected.append(sid)

    def sent_to(self, sid: str, event: str | None = None) -> list:
        return [data for name, data, to in self.emitted if to == sid and (event is None or name == event)]

    def clear(self) -> None:
        self.emitted.clear()


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def coordinator(emitter, session_factory) -> ChatCoordinator:
    return ChatCoordinator(emitter, session_factory)


@pytest.fixture
def connect(coordinator, token_for):
    async def _connect(sid: str, user_id: str) -> bool:
        return await coordinator.handle_connect(sid, {"token": token_for(user_id)})

    return _connect


async def _create_room(coordinator, emitter, sid, participant_ids) -> str:
    await coordinator.dispatch("createRoom", sid, {"participants": [{"id": pid} for pid in participant_ids]})
    return emitter.sent_to(sid, "rooms")[-1]["items"][0]["id"]


def test_extract_token_prefers_auth_payload() -> None:
    assert extract_token({"token": "abc"}, {"HTTP_AUTHORIZATION": "Bearer xyz"}) == "abc"
    assert extract_token(None, {"HTTP_AUTHORIZATION": "Bearer xyz"}) == "xyz"
    assert extract_token({}, {}) is None


@pytest.mark.asyncio
async def test_connect_emits_first_rooms_page(coordinator, emitter, connect, seeded) -> None:
    assert await connect("a1", seeded.alice)

    [payload] = emitter.sent_to("a1", "rooms")
    assert payload["items"] == []
    assert payload["meta"] == {
        "totalItems": 0,
        "itemCount": 0,
        "itemsPerPage": 10,
        "totalPages": 0,
        "currentPage": 0,
    }
    assert coordinator.user_for("a1").id == seeded.alice
    assert await coordinator.presence.is_connected("a1")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "auth,code",
    [
        (None, "TOKEN_MISSING"),
        ({"token": "not-a-jwt"}, "TOKEN_INVALID"),
    ],
)
async def test_connect_refuses_bad_tokens(coordinator, emitter, seeded, auth, code) -> None:
    assert await coordinator.handle_connect("x1", auth) is False

    [error] = emitter.sent_to("x1", "Error")
    assert error["code"] == code
    assert error["statusCode"] == 401
    assert coordinator.user_for("x1") is None
    assert not await coordinator.presence.is_connected("x1")


@pytest.mark.asyncio
async def test_connect_refuses_expired_and_unknown_subjects(coordinator, emitter, seeded, token_for) -> None:
    assert not await coordinator.handle_connect("x1", {"token": token_for(seeded.alice, expires_in=-60)})
    assert not await coordinator.handle_connect("x2", {"token": token_for("ghost-user")})

    assert emitter.sent_to("x1", "Error")[0]["code"] == "TOKEN_EXPIRED"
    assert emitter.sent_to("x2", "Error")[0]["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_disconnect_removes_presence(coordinator, emitter, connect, seeded) -> None:
    await connect("a1", seeded.alice)
    await connect("b1", seeded.bob)
    room_id = await _create_room(coordinator, emitter, "a1", [seeded.bob])
    await coordinator.dispatch("joindRoom", "a1", {"id": room_id})

    await coordinator.handle_disconnect("a1")

    connected, joined = await coordinator.presence.snapshot()
    assert [record.socket_id for record in connected] == ["b1"]
    assert joined == []
    assert coordinator.user_for("a1") is None


@pytest.mark.asyncio
async def test_startup_starts_from_empty_presence(coordinator, connect, seeded) -> None:
    await connect("a1", seeded.alice)

    await coordinator.startup()

    assert await coordinator.presence.snapshot() == ([], [])
    assert coordinator.user_for("a1") is None


@pytest.mark.asyncio
async def test_create_room_pushes_rooms_to_every_participant_socket(coordinator, emitter, connect, seeded) -> None:
    await connect("a1", seeded.alice)
    await connect("a2", seeded.alice)
    await connect("b1", seeded.bob)
    await connect("c1", seeded.carol)
    emitter.clear()

    await coordinator.dispatch("createRoom", "a1", {"participants": [{"id": seeded.bob}]})

    for sid in ("a1", "a2", "b1"):
        [payload] = emitter.sent_to(sid, "rooms")
        assert payload["meta"]["totalItems"] == 1
        [room] = payload["items"]
        assert {user["id"] for user in room["participants"]} == {seeded.alice, seeded.bob}
    assert emitter.sent_to("c1") == []


@pytest.mark.asyncio
async def test_create_room_with_unknown_participant_drops_socket(coordinator, emitter, connect, seeded) -> None:
    await connect("a1", seeded.alice)

    await coordinator.dispatch("createRoom", "a1", {"participants": [{"id": "ghost-user"}]})

    assert emitter.sent_to("a1", "Error")[-1]["code"] == "PROTOCOL_VIOLATION"
    assert emitter.disconnected == ["a1"]
    assert not await coordinator.presence.is_connected("a1")


@pytest.mark.asyncio
async def test_message_reaches_only_joined_sockets(coordinator, emitter, connect, session_factory, seeded) -> None:
    await connect("a1", seeded.alice)
    await connect("a2", seeded.alice)
    await connect("b1", seeded.bob)
    room_id = await _create_room(coordinator, emitter, "b1", [seeded.alice])

    await coordinator.dispatch("joindRoom", "a2", {"id": room_id})
    [history] = emitter.sent_to("a2", "messages")
    assert history["items"] == []
    assert history["meta"]["currentPage"] == 0
    emitter.clear()

    await coordinator.dispatch("addMessage", "b1", {"content": "hello there", "room": {"id": room_id}})

    [added] = emitter.sent_to("a2", "messageAdded")
    assert added["content"] == "hello there"
    assert added["sender"]["id"] == seeded.bob
    assert added["room"] == {"id": room_id}
    assert emitter.sent_to("a1") == []
    assert emitter.sent_to("b1") == []

    async with session_factory() as session:
        stored = (await session.execute(select(func.count(Message.id)))).scalar_one()
    assert stored == 1


@pytest.mark.asyncio
async def test_leave_room_stops_fan_out(coordinator, emitter, connect, seeded) -> None:
    await connect("a1", seeded.alice)
    await connect("b1", seeded.bob)
    room_id = await _create_room(coordinator, emitter, "a1", [seeded.bob])
    await coordinator.dispatch("joindRoom", "b1", {"id": room_id})
    await coordinator.dispatch("leaveRoom", "b1")
    emitter.clear()

    await coordinator.dispatch("addMessage", "a1", {"content": "anyone?", "room": {"id": room_id}})

    assert emitter.emitted == []


@pytest.mark.asyncio
async def test_join_returns_history_oldest_first(coordinator, emitter, connect, session_factory, seeded) -> None:
    await connect("a1", seeded.alice)
    room_id = await _create_room(coordinator, emitter, "a1", [seeded.bob])

    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    async with session_factory() as session:
        async with session.begin():
            for index in range(12):
                session.add(
                    Message(
                        room_id=room_id,
                        sender_id=seeded.alice,
                        content=f"message {index}",
                        created_at=base + timedelta(minutes=index),
                    )
                )

    await coordinator.dispatch("joindRoom", "a1", {"id": room_id})

    [history] = emitter.sent_to("a1", "messages")
    assert [item["content"] for item in history["items"]] == [f"message {index}" for index in range(2, 12)]
    assert history["meta"]["totalItems"] == 12
    assert history["meta"]["totalPages"] == 2


@pytest.mark.asyncio
async def test_non_participant_cannot_join_or_post(coordinator, emitter, connect, seeded) -> None:
    await connect("a1", seeded.alice)
    await connect("c1", seeded.carol)
    room_id = await _create_room(coordinator, emitter, "a1", [seeded.bob])
    await coordinator.dispatch("joindRoom", "a1", {"id": room_id})
    emitter.clear()

    await coordinator.dispatch("joindRoom", "c1", {"id": room_id})
    await coordinator.dispatch("addMessage", "c1", {"content": "let me in", "room": {"id": room_id}})

    assert emitter.emitted == []
    assert emitter.disconnected == []
    assert [record.socket_id for record in await coordinator.presence.joined_for_room(room_id)] == ["a1"]


@pytest.mark.asyncio
async def test_add_message_without_room_is_protocol_error(coordinator, emitter, connect, seeded) -> None:
    await connect("a1", seeded.alice)

    await coordinator.dispatch("addMessage", "a1", {"content": "lost"})

    [error] = emitter.sent_to("a1", "Error")
    assert error["code"] == "PROTOCOL_VIOLATION"
    assert error["kind"] == "bad_request"
    assert emitter.disconnected == ["a1"]


@pytest.mark.asyncio
async def test_paginate_room_translates_and_clamps(coordinator, emitter, connect, seeded) -> None:
    await connect("a1", seeded.alice)
    for _ in range(3):
        await _create_room(coordinator, emitter, "a1", [seeded.bob])
    emitter.clear()

    await coordinator.dispatch("paginateRoom", "a1", {"page": 1, "limit": 2})
    await coordinator.dispatch("paginateRoom", "a1", {"page": 0, "limit": 500})

    second_page, clamped = emitter.sent_to("a1", "rooms")
    assert second_page["meta"] == {
        "totalItems": 3,
        "itemCount": 1,
        "itemsPerPage": 2,
        "totalPages": 2,
        "currentPage": 1,
    }
    assert clamped["meta"]["itemsPerPage"] == 100
    assert clamped["meta"]["currentPage"] == 0
    assert clamped["meta"]["itemCount"] == 3


@pytest.mark.asyncio
async def test_events_from_unauthenticated_socket_are_dropped(coordinator, emitter, seeded) -> None:
    await coordinator.dispatch("paginateRoom", "stranger", {"page": 0})

    assert emitter.sent_to("stranger", "Error")[0]["code"] == "UNAUTHORIZED"
    assert emitter.disconnected == ["stranger"]


@pytest.mark.asyncio
async def test_leave_room_from_unauthenticated_socket_is_dropped(coordinator, emitter, seeded) -> None:
    await coordinator.dispatch("leaveRoom", "stranger")

    assert emitter.sent_to("stranger", "Error")[0]["code"] == "UNAUTHORIZED"
    assert emitter.disconnected == ["stranger"]
    assert "stranger" not in coordinator._socket_locks


@pytest.mark.asyncio
async def test_disconnect_during_join_records_nothing(coordinator, emitter, connect, seeded, monkeypatch) -> None:
    await connect("a1", seeded.alice)
    room_id = await _create_room(coordinator, emitter, "a1", [seeded.bob])
    emitter.clear()

    loading = asyncio.Event()
    release = asyncio.Event()
    original = messages_repo.list_recent_for_room

    async def slow_history(*args, **kwargs):
        loading.set()
        await release.wait()
        return await original(*args, **kwargs)

    monkeypatch.setattr(messages_repo, "list_recent_for_room", slow_history)

    join = asyncio.create_task(coordinator.dispatch("joindRoom", "a1", {"id": room_id}))
    await loading.wait()
    await coordinator.handle_disconnect("a1")
    release.set()
    await join

    assert await coordinator.presence.snapshot() == ([], [])
    assert emitter.sent_to("a1", "messages") == []
    assert coordinator.user_for("a1") is None
