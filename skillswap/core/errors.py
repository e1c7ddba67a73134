"""Typed failures shared by the REST routes and the realtime coordinator.

Every error carries a kind from the taxonomy (not found, bad request,
forbidden, unauthorized) and the HTTP status it maps to. REST handlers turn
them into a structured body; socket handlers decide between disconnecting
and dropping the event based on the class.
"""
from __future__ import annotations

import enum

from fastapi import status


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"


class SkillSwapError(Exception):
    """Base class for all domain failures."""

    kind: ErrorKind = ErrorKind.BAD_REQUEST
    http_status: int = status.HTTP_400_BAD_REQUEST
    default_code: str = "BAD_REQUEST"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "kind": self.kind.value,
                "message": self.message,
                "statusCode": self.http_status,
            }
        }


class NotFoundError(SkillSwapError):
    kind = ErrorKind.NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class BadRequestError(SkillSwapError):
    kind = ErrorKind.BAD_REQUEST
    http_status = status.HTTP_400_BAD_REQUEST
    default_code = "BAD_REQUEST"


class ForbiddenError(SkillSwapError):
    kind = ErrorKind.FORBIDDEN
    http_status = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class UnauthorizedError(SkillSwapError):
    kind = ErrorKind.UNAUTHORIZED
    http_status = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"


class ProtocolError(BadRequestError):
    """A socket client sent a payload that breaks the event contract."""

    default_code = "PROTOCOL_VIOLATION"
