"""Exchange request endpoints."""
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..models.exchange_request import RequestStatus
from ..models.user import User
from ..schemas import requests as schemas
from ..services import request_messages as request_messages_service
from ..services import requests as requests_service
from .deps import get_current_user, require_request_access

router = APIRouter()


@router.post("", response_model=schemas.ExchangeRequestOut, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: schemas.CreateRequestPayload,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.ExchangeRequestOut:
    """Open an exchange request on another user's skill."""

    request = await requests_service.create_request(payload, user.id, session)
    return schemas.ExchangeRequestOut.model_validate(request)


@router.get("/my", response_model=list[schemas.ExchangeRequestOut])
async def list_my_requests(
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    role: Literal["asRequester", "asProvider"] | None = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[schemas.ExchangeRequestOut]:
    """Return requests sent and received by the caller."""

    requests = await requests_service.list_my_requests(user.id, session, status=status_filter, role=role)
    return [schemas.ExchangeRequestOut.model_validate(request) for request in requests]


@router.get("/{request_id}", response_model=schemas.ExchangeRequestOut)
async def get_request(
    request_id: str,
    user: User = Depends(require_request_access),
    session: AsyncSession = Depends(get_session),
) -> schemas.ExchangeRequestOut:
    request = await requests_service.get_request(request_id, user.id, session)
    return schemas.ExchangeRequestOut.model_validate(request)


@router.patch("/{request_id}/status", response_model=schemas.ExchangeRequestOut)
async def update_status(
    request_id: str,
    payload: schemas.UpdateStatusPayload,
    user: User = Depends(require_request_access),
    session: AsyncSession = Depends(get_session),
) -> schemas.ExchangeRequestOut:
    """Move a request along its lifecycle."""

    request = await requests_service.update_status(request_id, user.id, payload.status, session)
    return schemas.ExchangeRequestOut.model_validate(request)


@router.get("/{request_id}/messages", response_model=list[schemas.RequestMessageOut])
async def list_request_messages(
    request_id: str,
    user: User = Depends(require_request_access),
    session: AsyncSession = Depends(get_session),
) -> list[schemas.RequestMessageOut]:
    messages = await request_messages_service.list_messages(request_id, user.id, session)
    return [schemas.RequestMessageOut.model_validate(message) for message in messages]


@router.post(
    "/{request_id}/messages",
    response_model=schemas.RequestMessageOut,
    status_code=status.HTTP_201_CREATED,
)
async def post_request_message(
    request_id: str,
    payload: schemas.RequestMessagePayload,
    user: User = Depends(require_request_access),
    session: AsyncSession = Depends(get_session),
) -> schemas.RequestMessageOut:
    message = await request_messages_service.post_message(request_id, user.id, payload.content, session)
    return schemas.RequestMessageOut.model_validate(message)
