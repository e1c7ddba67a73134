"""Schemas for the exchange request endpoints."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from ..models.exchange_request import RequestStatus
from .common import CamelModel, UserSummary

MIN_MESSAGE_LENGTH = 10


class CreateRequestPayload(CamelModel):
    skill_id: UUID
    message: str = Field(..., description="Personal note to the provider")

    @field_validator("message")
    @classmethod
    def _message_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < MIN_MESSAGE_LENGTH:
            raise ValueError(f"message must be at least {MIN_MESSAGE_LENGTH} characters")
        return value


class UpdateStatusPayload(CamelModel):
    status: RequestStatus


class SkillSummary(CamelModel):
    id: str
    title: str


class ExchangeRequestOut(CamelModel):
    id: str
    skill_id: str
    requester_id: str
    provider_id: str
    message: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    skill: SkillSummary | None = None
    requester: UserSummary | None = None
    provider: UserSummary | None = None


class RequestMessagePayload(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class RequestMessageOut(CamelModel):
    id: str
    request_id: str
    sender_id: str
    content: str
    is_read: bool
    created_at: datetime
    sender: UserSummary | None = None
