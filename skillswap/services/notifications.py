"""Notification sink and inbox operations."""
from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError
from ..models.notification import Notification
from ..repositories import notifications as notifications_repo

logger = logging.getLogger(__name__)


class NotificationSink:
    """Fire-and-forget delivery into the notification inbox.

    Writes happen in a session of their own so a failed notification can
    never roll back (or expire) the caller's unit of work.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    def _factory(self) -> Callable[[], AsyncSession]:
        if self._session_factory is None:
            from ..db.session import SessionLocal

            self._session_factory = SessionLocal
        return self._session_factory

    async def notify(
        self,
        user_id: str,
        title: str,
        body: str,
        request_id: str | None = None,
    ) -> None:
        try:
            async with self._factory()() as session:
                async with session.begin():
                    await notifications_repo.create_notification(
                        session,
                        user_id=user_id,
                        title=title,
                        message=body,
                        request_id=request_id,
                    )
        except Exception:  # noqa: BLE001
            logger.exception(
                "Failed to deliver notification",
                extra={"user_id": user_id, "request_id": request_id},
            )


sink = NotificationSink()


async def list_inbox(session: AsyncSession, user_id: str) -> list[Notification]:
    """Return the user's most recent notifications."""

    return await notifications_repo.list_for_user(session, user_id)


async def unread_count(session: AsyncSession, user_id: str) -> int:
    return await notifications_repo.count_unread(session, user_id)


async def mark_read(session: AsyncSession, *, notification_id: str, user_id: str) -> None:
    """Mark a notification read, refusing ids that belong to someone else."""

    updated = await notifications_repo.mark_read(session, notification_id=notification_id, user_id=user_id)
    if not updated:
        await session.rollback()
        raise NotFoundError("Notification not found", code="NOTIFICATION_NOT_FOUND")
    await session.commit()


async def mark_all_read(session: AsyncSession, user_id: str) -> int:
    count = await notifications_repo.mark_all_read(session, user_id)
    await session.commit()
    return count
