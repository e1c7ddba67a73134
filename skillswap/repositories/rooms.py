"""Room persistence and per-user room listing."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.pagination import PageRequest, PageResult
from ..models.room import Room, room_participants
from ..models.user import User


async def create_room(session: AsyncSession, *, participants: Sequence[User]) -> Room:
    """Persist a room with the given participant set."""

    room = Room()
    room.participants = list(participants)
    session.add(room)
    await session.flush()
    return room


async def get_by_id(session: AsyncSession, room_id: str) -> Room | None:
    """Return a room with its participants loaded."""

    return await session.get(Room, room_id)


async def list_for_user(session: AsyncSession, *, user_id: str, page: PageRequest) -> PageResult[Room]:
    """Return one page of the user's rooms, most recently updated first."""

    count_stmt = select(func.count()).select_from(room_participants).where(
        room_participants.c.user_id == user_id
    )
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = (
        select(Room)
        .join(room_participants, room_participants.c.room_id == Room.id)
        .where(room_participants.c.user_id == user_id)
        .order_by(Room.updated_at.desc(), Room.id.asc())
        .offset(page.offset)
        .limit(page.limit)
    )
    result = await session.execute(stmt)
    return PageResult(items=list(result.scalars().all()), total_items=total, page=page)
