"""Exchange request lifecycle: creation rules and role-gated status transitions."""
from __future__ import annotations

from dataclasses import dataclass
import enum
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import BadRequestError, ForbiddenError, NotFoundError, SkillSwapError
from ..models.base import utcnow
from ..models.exchange_request import ExchangeRequest, RequestStatus
from ..repositories import requests as requests_repo
from ..repositories import skills as skills_repo
from ..schemas import requests as schemas
from .notifications import NotificationSink, sink as default_sink

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    REQUESTER = "requester"
    PROVIDER = "provider"


TRANSITIONS: dict[tuple[RequestStatus, RequestStatus], frozenset[Role]] = {
    (RequestStatus.PENDING, RequestStatus.ACCEPTED): frozenset({Role.PROVIDER}),
    (RequestStatus.PENDING, RequestStatus.REJECTED): frozenset({Role.PROVIDER}),
    (RequestStatus.PENDING, RequestStatus.CANCELLED): frozenset({Role.REQUESTER}),
    (RequestStatus.ACCEPTED, RequestStatus.COMPLETED): frozenset({Role.REQUESTER, Role.PROVIDER}),
}

STATUS_NOTIFICATIONS: dict[RequestStatus, tuple[str, str]] = {
    RequestStatus.ACCEPTED: ("Request accepted", '{actor} accepted your request for "{skill}".'),
    RequestStatus.REJECTED: ("Request rejected", '{actor} declined your request for "{skill}".'),
    RequestStatus.CANCELLED: ("Request cancelled", '{actor} cancelled their request for "{skill}".'),
    RequestStatus.COMPLETED: ("Exchange completed", '{actor} marked the exchange for "{skill}" as completed.'),
}


@dataclass(frozen=True, slots=True)
class AccessDecision:
    """Outcome of an authorization check; denials carry the error to raise."""

    allowed: bool
    error: SkillSwapError | None = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, error: SkillSwapError) -> "AccessDecision":
        return cls(allowed=False, error=error)

    def enforce(self) -> None:
        if not self.allowed and self.error is not None:
            raise self.error


def roles_of(request: ExchangeRequest, user_id: str) -> frozenset[Role]:
    roles = set()
    if request.requester_id == user_id:
        roles.add(Role.REQUESTER)
    if request.provider_id == user_id:
        roles.add(Role.PROVIDER)
    return frozenset(roles)


def check_participant(request: ExchangeRequest, user_id: str) -> AccessDecision:
    if not roles_of(request, user_id):
        return AccessDecision.deny(
            ForbiddenError("You do not have access to this request", code="REQUEST_ACCESS_DENIED")
        )
    return AccessDecision.allow()


def check_transition(request: ExchangeRequest, user_id: str, new_status: RequestStatus) -> AccessDecision:
    """Decide whether ``user_id`` may move ``request`` to ``new_status``.

    A pair missing from the transition table is a bad request whoever asks;
    a listed pair attempted by the wrong party is forbidden.
    """

    participant = check_participant(request, user_id)
    if not participant.allowed:
        return participant

    allowed_roles = TRANSITIONS.get((request.status, new_status))
    if allowed_roles is None:
        return AccessDecision.deny(
            BadRequestError(
                f"Invalid status transition: {request.status.value} -> {new_status.value}",
                code="INVALID_STATUS_TRANSITION",
            )
        )
    if not allowed_roles & roles_of(request, user_id):
        required = " or ".join(sorted(role.value for role in allowed_roles))
        return AccessDecision.deny(
            ForbiddenError(
                f"Only the {required} can move this request to {new_status.value}",
                code="TRANSITION_ROLE_FORBIDDEN",
            )
        )
    return AccessDecision.allow()


async def create_request(
    payload: schemas.CreateRequestPayload,
    requester_id: str,
    session: AsyncSession,
    notifier: NotificationSink | None = None,
) -> ExchangeRequest:
    """Open a pending request on someone else's skill and notify its owner."""

    skill_id = str(payload.skill_id)
    skill = await skills_repo.get_with_owner(session, skill_id)
    if skill is None:
        raise NotFoundError("Skill not found", code="SKILL_NOT_FOUND")
    if skill.owner is None:
        raise BadRequestError("This skill has no owner", code="SKILL_WITHOUT_OWNER")
    if skill.owner.id == requester_id:
        raise BadRequestError("You cannot request your own skill", code="CANNOT_REQUEST_OWN_SKILL")

    existing = await requests_repo.find_pending(session, skill_id=skill_id, requester_id=requester_id)
    if existing is not None:
        raise BadRequestError(
            "You already have a pending request for this skill", code="DUPLICATE_PENDING_REQUEST"
        )

    try:
        request = await requests_repo.create_request(
            session,
            skill_id=skill_id,
            requester_id=requester_id,
            provider_id=skill.owner.id,
            message=payload.message,
        )
        await session.commit()
    except IntegrityError as exc:
        # A concurrent create won the race on the pending-request index.
        await session.rollback()
        raise BadRequestError(
            "You already have a pending request for this skill", code="DUPLICATE_PENDING_REQUEST"
        ) from exc

    await session.refresh(request, attribute_names=["skill", "requester", "provider"])
    logger.info(
        "Exchange request created",
        extra={"request_id": request.id, "user_id": requester_id},
    )

    requester_name = request.requester.display_name if request.requester else "Someone"
    await (notifier or default_sink).notify(
        request.provider_id,
        "New exchange request",
        f'{requester_name} wants to learn "{skill.title}".',
        request.id,
    )
    return request


async def list_my_requests(
    user_id: str,
    session: AsyncSession,
    *,
    status: RequestStatus | None = None,
    role: str | None = None,
) -> list[ExchangeRequest]:
    return await requests_repo.list_for_user(session, user_id=user_id, role=role, status=status)


async def get_request(request_id: str, user_id: str, session: AsyncSession) -> ExchangeRequest:
    """Load a request the user takes part in."""

    request = await requests_repo.get_by_id(session, request_id)
    if request is None:
        raise NotFoundError("Request not found", code="REQUEST_NOT_FOUND")
    check_participant(request, user_id).enforce()
    return request


async def update_status(
    request_id: str,
    user_id: str,
    new_status: RequestStatus,
    session: AsyncSession,
    notifier: NotificationSink | None = None,
) -> ExchangeRequest:
    """Apply a validated transition and tell the other party about it."""

    request = await get_request(request_id, user_id, session)
    check_transition(request, user_id, new_status).enforce()

    previous = request.status
    request.status = new_status
    request.updated_at = utcnow()
    session.add(request)
    await session.commit()

    logger.info(
        "Exchange request %s -> %s",
        previous.value,
        new_status.value,
        extra={"request_id": request.id, "user_id": user_id},
    )

    acting_as_requester = request.requester_id == user_id
    recipient_id = request.provider_id if acting_as_requester else request.requester_id
    actor = request.requester if acting_as_requester else request.provider
    title, template = STATUS_NOTIFICATIONS[new_status]
    body = template.format(
        actor=actor.display_name if actor else "The other participant",
        skill=request.skill.title if request.skill else "your skill",
    )
    await (notifier or default_sink).notify(recipient_id, title, body, request.id)
    return request


async def can_access(request_id: str, user_id: str, session: AsyncSession) -> bool:
    """True when the request exists and the user is its requester or provider."""

    request = await requests_repo.get_by_id(session, request_id)
    if request is None:
        return False
    return bool(roles_of(request, user_id))


async def check_access(request_id: str, user_id: str, session: AsyncSession) -> AccessDecision:
    """Access guard decision that tells a missing request apart from a foreign one."""

    if await can_access(request_id, user_id, session):
        return AccessDecision.allow()
    if await requests_repo.get_by_id(session, request_id) is None:
        return AccessDecision.deny(NotFoundError("Request not found", code="REQUEST_NOT_FOUND"))
    return AccessDecision.deny(
        ForbiddenError("You do not have access to this request", code="REQUEST_ACCESS_DENIED")
    )
