"""Expose ORM models."""
from .exchange_request import ExchangeRequest, RequestStatus
from .message import Message
from .notification import Notification
from .request_message import RequestMessage
from .room import Room, room_participants
from .skill import Skill
from .user import User

__all__ = [
    "ExchangeRequest",
    "Message",
    "Notification",
    "RequestMessage",
    "RequestStatus",
    "Room",
    "Skill",
    "User",
    "room_participants",
]
