"""Request-scoped conversation persistence."""
from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.request_message import RequestMessage


async def create_message(session: AsyncSession, *, request_id: str, sender_id: str, content: str) -> RequestMessage:
    message = RequestMessage(request_id=request_id, sender_id=sender_id, content=content, is_read=False)
    session.add(message)
    await session.flush()
    await session.refresh(message, attribute_names=["sender"])
    return message


async def list_for_request(session: AsyncSession, request_id: str) -> list[RequestMessage]:
    stmt = (
        select(RequestMessage)
        .where(RequestMessage.request_id == request_id)
        .order_by(RequestMessage.created_at.asc(), RequestMessage.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def mark_read_for_reader(session: AsyncSession, *, request_id: str, reader_id: str) -> int:
    """Mark messages the reader received in this conversation as read."""

    stmt = (
        update(RequestMessage)
        .where(
            RequestMessage.request_id == request_id,
            RequestMessage.sender_id != reader_id,
            RequestMessage.is_read.is_(False),
        )
        .values(is_read=True)
    )
    result = await session.execute(stmt)
    return result.rowcount
