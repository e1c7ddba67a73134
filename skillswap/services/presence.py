"""In-memory presence: which sockets are connected and which rooms they are viewing."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True, slots=True)
class ConnectedUser:
    """One live socket connection of a user."""

    socket_id: str
    user_id: str


@dataclass(frozen=True, slots=True)
class JoinedRoom:
    """A socket currently looking at a room."""

    socket_id: str
    user_id: str
    room_id: str


class PresenceRegistry:
    """Track connected sockets per user and joined rooms per socket.

    Room membership lives in the database; this registry only knows about
    attention, and it is scoped to the process: a new registry starts empty.
    Every mutation is keyed by socket id.
    """

    def __init__(self) -> None:
        self._connected: Dict[str, ConnectedUser] = {}
        self._joined: Dict[str, Dict[str, JoinedRoom]] = {}
        self._lock = asyncio.Lock()

    async def reset(self) -> None:
        """Drop every connection and joined room."""

        async with self._lock:
            self._connected.clear()
            self._joined.clear()

    async def connect(self, socket_id: str, user_id: str) -> ConnectedUser:
        async with self._lock:
            record = ConnectedUser(socket_id=socket_id, user_id=user_id)
            self._connected[socket_id] = record
            return record

    async def disconnect(self, socket_id: str) -> None:
        """Remove the socket's connection and all of its joined rooms."""

        async with self._lock:
            self._connected.pop(socket_id, None)
            self._joined.pop(socket_id, None)

    async def is_connected(self, socket_id: str) -> bool:
        async with self._lock:
            return socket_id in self._connected

    async def connections_for_user(self, user_id: str) -> list[ConnectedUser]:
        async with self._lock:
            return [record for record in self._connected.values() if record.user_id == user_id]

    async def join(self, socket_id: str, user_id: str, room_id: str) -> JoinedRoom | None:
        """Record that the socket is viewing the room.

        Returns None without recording anything when the socket has already
        gone away, so a late join cannot outlive its disconnect.
        """

        async with self._lock:
            if socket_id not in self._connected:
                return None
            record = JoinedRoom(socket_id=socket_id, user_id=user_id, room_id=room_id)
            self._joined.setdefault(socket_id, {})[room_id] = record
            return record

    async def leave(self, socket_id: str) -> None:
        """Forget every room the socket was viewing."""

        async with self._lock:
            self._joined.pop(socket_id, None)

    async def joined_for_room(self, room_id: str) -> list[JoinedRoom]:
        async with self._lock:
            return [rooms[room_id] for rooms in self._joined.values() if room_id in rooms]

    async def snapshot(self) -> tuple[list[ConnectedUser], list[JoinedRoom]]:
        async with self._lock:
            connected = list(self._connected.values())
            joined = [record for rooms in self._joined.values() for record in rooms.values()]
            return connected, joined
