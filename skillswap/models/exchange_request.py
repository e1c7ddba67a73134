"""Exchange request model."""
from __future__ import annotations

from datetime import datetime
import enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow

if TYPE_CHECKING:
    from .skill import Skill
    from .user import User


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ExchangeRequest(Base):
    """A requester asking a provider to exchange on one skill listing."""

    __tablename__ = "requests"
    __table_args__ = (
        # One open request per requester and skill, enforced by the store as well.
        Index(
            "uq_requests_pending_skill_requester",
            "skill_id",
            "requester_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    skill_id: Mapped[str] = mapped_column(ForeignKey("skills.id", ondelete="CASCADE"), nullable=False)
    requester_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    provider_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[RequestStatus] = mapped_column(
        Enum(
            RequestStatus,
            name="request_status",
            values_callable=lambda members: [member.value for member in members],
        ),
        default=RequestStatus.PENDING,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    skill: Mapped["Skill"] = relationship("Skill", lazy="selectin")
    requester: Mapped["User"] = relationship("User", foreign_keys=[requester_id], lazy="selectin")
    provider: Mapped["User"] = relationship("User", foreign_keys=[provider_id], lazy="selectin")
