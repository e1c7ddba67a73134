"""Schemas for the notification inbox."""
from __future__ import annotations

from datetime import datetime

from .common import CamelModel


class NotificationOut(CamelModel):
    id: str
    user_id: str
    title: str
    message: str
    request_id: str | None = None
    is_read: bool
    created_at: datetime


class UnreadCountResponse(CamelModel):
    count: int
