"""Chat room model and its participant association."""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow

if TYPE_CHECKING:
    from .user import User


room_participants = Table(
    "room_participants",
    Base.metadata,
    Column("room_id", ForeignKey("rooms.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Room(Base):
    """Persistent group conversation with a fixed participant set."""

    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    participants: Mapped[list["User"]] = relationship(
        "User", secondary=room_participants, lazy="selectin", order_by="User.email"
    )

    def has_participant(self, user_id: str) -> bool:
        return any(user.id == user_id for user in self.participants)
