"""Shared route dependencies: current user and request access guard."""
from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ForbiddenError, UnauthorizedError
from ..core.security import verifier
from ..db.session import get_session
from ..models.user import User
from ..repositories import users as users_repo
from ..services import requests as requests_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the bearer token to a user record."""

    if credentials is None:
        raise UnauthorizedError("Missing bearer token", code="TOKEN_MISSING")

    claims = verifier.verify(credentials.credentials)
    user = await users_repo.get_by_id(session, claims.subject_id)
    if user is None:
        raise UnauthorizedError("Unknown token subject", code="USER_NOT_FOUND")
    if user.is_banned:
        raise ForbiddenError("Your account has been banned", code="USER_BANNED")
    return user


async def require_request_access(
    request_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Let only the requester or provider through to a request's routes."""

    decision = await requests_service.check_access(request_id, user.id, session)
    decision.enforce()
    return user
