"""Shared fixtures: a throwaway SQLite database per test."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from skillswap import models  # noqa: F401 - register mappers
from skillswap.core.config import settings
from skillswap.models.base import Base, new_id
from skillswap.models.skill import Skill
from skillswap.models.user import User


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'skillswap-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory) -> SimpleNamespace:
    """Three users; bob owns a skill and one skill has no owner at all."""

    alice = User(id=new_id(), email="alice@campus.example", first_name="Alice", last_name="Ng")
    bob = User(id=new_id(), email="bob@campus.example", first_name="Bob", last_name="Diaz")
    carol = User(id=new_id(), email="carol@campus.example", first_name="Carol", last_name="Ito")
    guitar = Skill(id=new_id(), title="Guitar basics", description="Chords", user_id=bob.id)
    orphan = Skill(id=new_id(), title="Knitting", description="Scarves", user_id=None)

    async with session_factory() as session:
        async with session.begin():
            session.add_all([alice, bob, carol])
            await session.flush()
            session.add_all([guitar, orphan])

    return SimpleNamespace(
        alice=alice.id,
        bob=bob.id,
        carol=carol.id,
        skill=guitar.id,
        orphan_skill=orphan.id,
    )


def make_token(user_id: str, *, expires_in: int = 3600, secret: str | None = None) -> str:
    payload = {"sub": user_id, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def token_for():
    return make_token


@pytest_asyncio.fixture
async def client(session_factory, monkeypatch):
    """HTTP client bound to the test database, with notifications stored there too."""

    from httpx import ASGITransport, AsyncClient

    from skillswap.db.session import get_session
    from skillswap.main import app
    from skillswap.services import requests as requests_service
    from skillswap.services.notifications import NotificationSink

    async def _session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    monkeypatch.setattr(requests_service, "default_sink", NotificationSink(session_factory))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()
