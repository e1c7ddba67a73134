"""Room message persistence."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.pagination import PageRequest, PageResult
from ..models.message import Message


async def create_message(session: AsyncSession, *, room_id: str, sender_id: str, content: str) -> Message:
    """Persist a message and return it with its sender loaded."""

    message = Message(room_id=room_id, sender_id=sender_id, content=content)
    session.add(message)
    await session.flush()
    await session.refresh(message, attribute_names=["sender"])
    return message


async def list_recent_for_room(session: AsyncSession, *, room_id: str, page: PageRequest) -> PageResult[Message]:
    """Return one page of a room's history.

    Pages are counted from the newest message backwards; the items within a
    page are returned oldest first so they read top to bottom.
    """

    count_stmt = select(func.count(Message.id)).where(Message.room_id == room_id)
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = (
        select(Message)
        .where(Message.room_id == room_id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .offset(page.offset)
        .limit(page.limit)
    )
    result = await session.execute(stmt)
    items = list(result.scalars().all())
    items.reverse()
    return PageResult(items=items, total_items=total, page=page)
