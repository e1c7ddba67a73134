"""Conversation attached to a single exchange request."""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import BadRequestError
from ..models.exchange_request import RequestStatus
from ..models.request_message import RequestMessage
from ..repositories import request_messages as request_messages_repo
from . import requests as requests_service

logger = logging.getLogger(__name__)

CLOSED_STATUSES = frozenset({RequestStatus.CANCELLED, RequestStatus.REJECTED})


async def list_messages(request_id: str, user_id: str, session: AsyncSession) -> list[RequestMessage]:
    """Return the conversation oldest first and mark what the reader received as read."""

    await requests_service.get_request(request_id, user_id, session)
    messages = await request_messages_repo.list_for_request(session, request_id)
    marked = await request_messages_repo.mark_read_for_reader(session, request_id=request_id, reader_id=user_id)
    if marked:
        await session.commit()
    return messages


async def post_message(request_id: str, user_id: str, content: str, session: AsyncSession) -> RequestMessage:
    request = await requests_service.get_request(request_id, user_id, session)
    if request.status in CLOSED_STATUSES:
        raise BadRequestError(
            f"The conversation is closed for {request.status.value} requests",
            code="CONVERSATION_CLOSED",
        )

    message = await request_messages_repo.create_message(
        session, request_id=request_id, sender_id=user_id, content=content
    )
    await session.commit()
    logger.debug("Request message stored", extra={"request_id": request_id, "user_id": user_id})
    return message
