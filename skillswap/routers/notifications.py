"""Notification inbox endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.notifications import NotificationOut, UnreadCountResponse
from ..services import notifications as notifications_service
from .deps import get_current_user

router = APIRouter()


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[NotificationOut]:
    """Return the caller's most recent notifications."""

    notifications = await notifications_service.list_inbox(session, user.id)
    return [NotificationOut.model_validate(item) for item in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=await notifications_service.unread_count(session, user.id))


@router.patch("/read-all", response_model=SuccessResponse)
async def mark_all_read(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    await notifications_service.mark_all_read(session, user.id)
    return SuccessResponse()


@router.patch("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    await notifications_service.mark_read(session, notification_id=notification_id, user_id=user.id)
    return SuccessResponse()
