"""Bearer token verification.

Issuing tokens belongs to the auth service; this side only checks the
signature, expiry and subject of a token it is handed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import jwt

from .config import Settings, settings as default_settings
from .errors import UnauthorizedError


@dataclass(slots=True)
class TokenClaims:
    subject_id: str
    claims: dict[str, Any] = field(default_factory=dict)


class AuthVerifier:
    """Verify HS256 (or configured) JWTs and expose the signed subject."""

    def __init__(self, config: Settings | None = None) -> None:
        self._settings = config or default_settings

    def verify(self, token: str | None) -> TokenClaims:
        if not token or not isinstance(token, str):
            raise UnauthorizedError("Missing bearer token", code="TOKEN_MISSING")

        token = token.strip()
        if token.lower().startswith("bearer "):
            token = token[7:].strip()

        options: dict[str, Any] = {"require": ["sub", "exp"]}
        if not self._settings.jwt_audience:
            options["verify_aud"] = False

        try:
            claims = jwt.decode(
                token,
                self._settings.jwt_secret,
                algorithms=[self._settings.jwt_algorithm],
                audience=self._settings.jwt_audience,
                leeway=self._settings.jwt_leeway_seconds,
                options=options,
            )
        except jwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("Token expired", code="TOKEN_EXPIRED") from exc
        except jwt.PyJWTError as exc:
            raise UnauthorizedError("Token invalid", code="TOKEN_INVALID") from exc

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise UnauthorizedError("Token invalid", code="TOKEN_INVALID")
        return TokenClaims(subject_id=subject, claims=claims)


verifier = AuthVerifier()
