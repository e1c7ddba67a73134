"""Skill catalog lookups."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.skill import Skill


async def get_with_owner(session: AsyncSession, skill_id: str) -> Skill | None:
    """Return a skill with its owner loaded."""

    stmt = select(Skill).options(selectinload(Skill.owner)).where(Skill.id == skill_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
