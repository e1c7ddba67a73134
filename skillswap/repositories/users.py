"""User directory lookups."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User


async def get_by_id(session: AsyncSession, user_id: str) -> User | None:
    """Return a user by identifier."""

    return await session.get(User, user_id)


async def get_many(session: AsyncSession, user_ids: Iterable[str]) -> list[User]:
    """Return the users matching ``user_ids``; unknown ids are skipped."""

    ids = set(user_ids)
    if not ids:
        return []
    result = await session.execute(select(User).where(User.id.in_(ids)))
    return list(result.scalars().all())
