"""Exchange request persistence helpers."""
from __future__ import annotations

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.exchange_request import ExchangeRequest, RequestStatus

ROLE_REQUESTER = "asRequester"
ROLE_PROVIDER = "asProvider"


async def get_by_id(session: AsyncSession, request_id: str) -> ExchangeRequest | None:
    """Return a request by identifier."""

    return await session.get(ExchangeRequest, request_id)


async def find_pending(session: AsyncSession, *, skill_id: str, requester_id: str) -> ExchangeRequest | None:
    """Return the open request a requester already has on a skill, if any."""

    stmt: Select[tuple[ExchangeRequest]] = select(ExchangeRequest).where(
        ExchangeRequest.skill_id == skill_id,
        ExchangeRequest.requester_id == requester_id,
        ExchangeRequest.status == RequestStatus.PENDING,
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def create_request(
    session: AsyncSession,
    *,
    skill_id: str,
    requester_id: str,
    provider_id: str,
    message: str,
) -> ExchangeRequest:
    """Stage a new pending request and flush it to obtain defaults."""

    request = ExchangeRequest(
        skill_id=skill_id,
        requester_id=requester_id,
        provider_id=provider_id,
        message=message,
        status=RequestStatus.PENDING,
    )
    session.add(request)
    await session.flush()
    return request


async def list_for_user(
    session: AsyncSession,
    *,
    user_id: str,
    role: str | None = None,
    status: RequestStatus | None = None,
) -> list[ExchangeRequest]:
    """Return requests where the user is requester and/or provider, newest first."""

    stmt = select(ExchangeRequest).order_by(ExchangeRequest.created_at.desc())
    if role == ROLE_REQUESTER:
        stmt = stmt.where(ExchangeRequest.requester_id == user_id)
    elif role == ROLE_PROVIDER:
        stmt = stmt.where(ExchangeRequest.provider_id == user_id)
    else:
        stmt = stmt.where(
            or_(ExchangeRequest.requester_id == user_id, ExchangeRequest.provider_id == user_id)
        )
    if status is not None:
        stmt = stmt.where(ExchangeRequest.status == status)

    result = await session.execute(stmt)
    return list(result.scalars().all())
