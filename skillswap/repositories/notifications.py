"""Notification inbox persistence."""
from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.notification import Notification

INBOX_SIZE = 20


async def create_notification(
    session: AsyncSession,
    *,
    user_id: str,
    title: str,
    message: str,
    request_id: str | None = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        request_id=request_id,
        is_read=False,
    )
    session.add(notification)
    await session.flush()
    return notification


async def list_for_user(session: AsyncSession, user_id: str, *, limit: int = INBOX_SIZE) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_unread(session: AsyncSession, user_id: str) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    return (await session.execute(stmt)).scalar_one()


async def mark_read(session: AsyncSession, *, notification_id: str, user_id: str) -> bool:
    """Mark one of the user's notifications read; False when it is not theirs."""

    stmt = (
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True)
    )
    result = await session.execute(stmt)
    return result.rowcount > 0


async def mark_all_read(session: AsyncSession, user_id: str) -> int:
    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    result = await session.execute(stmt)
    return result.rowcount
