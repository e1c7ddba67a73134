"""Socket event payloads for rooms and messages."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .common import CamelModel, UserSummary


class EntityRef(CamelModel):
    id: str = Field(..., min_length=1)


class RoomDraft(CamelModel):
    """Incoming ``createRoom`` payload; extra room fields are ignored."""

    participants: list[EntityRef] = Field(default_factory=list)


class MessageDraft(CamelModel):
    """Incoming ``addMessage`` payload."""

    content: str = Field(..., min_length=1, max_length=5000)
    room: EntityRef | None = None


class RoomOut(CamelModel):
    id: str
    participants: list[UserSummary]
    created_at: datetime
    updated_at: datetime


class MessageOut(CamelModel):
    id: str
    content: str
    created_at: datetime
    sender: UserSummary
    room: EntityRef

    @classmethod
    def from_message(cls, message) -> "MessageOut":
        return cls(
            id=message.id,
            content=message.content,
            created_at=message.created_at,
            sender=UserSummary.model_validate(message.sender),
            room=EntityRef(id=message.room_id),
        )
