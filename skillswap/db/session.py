"""Database session management."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..core.config import settings
from ..models.base import Base

engine_kwargs: dict[str, object] = {"echo": settings.database_echo}
if not settings.database_url.startswith("sqlite"):
    engine_kwargs["pool_pre_ping"] = True

engine = create_async_engine(settings.database_url, **engine_kwargs)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency to provide an async session."""

    async with SessionLocal() as session:
        yield session


async def create_schema() -> None:
    """Create all tables known to the ORM metadata."""

    from .. import models  # noqa: F401 - register mappers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
