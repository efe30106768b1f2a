# =============================================================================
# Session Verification — External Authentication Service
# =============================================================================
#
# Sessions, cookies, sign-up and sign-in are owned by a separate auth
# service. This module only asks it two things:
#
#   get_session(headers) → GET  {AUTH_URL}/api/auth/get-session
#   sign_out(headers)    → POST {AUTH_URL}/api/auth/sign-out
#
# forwarding the caller's Cookie / Authorization headers verbatim.
# A missing, expired or unverifiable session is reported as `None`; the
# request dependency turns that into a 401.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

# Request headers that carry the caller's credentials
_FORWARDED_HEADERS = ("cookie", "authorization")


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str | None = None
    name: str | None = None


class SessionVerifier(Protocol):
    async def get_session(
        self, headers: Mapping[str, str],
    ) -> AuthenticatedUser | None:
        ...

    async def sign_out(self, headers: Mapping[str, str]) -> int:
        """Returns the auth service's HTTP status."""
        ...


def _forwarded(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        name: headers[name]
        for name in _FORWARDED_HEADERS
        if headers.get(name)
    }


class HttpSessionVerifier:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )

    async def get_session(
        self, headers: Mapping[str, str],
    ) -> AuthenticatedUser | None:
        forwarded = _forwarded(headers)
        if not forwarded:
            return None

        try:
            response = await self._client.get(
                "/api/auth/get-session", headers=forwarded,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Session lookup failed: %s", e)
            return None

        user = (payload or {}).get("user") if isinstance(payload, dict) else None
        if not isinstance(user, dict) or not user.get("id"):
            return None

        return AuthenticatedUser(
            id=str(user["id"]),
            email=user.get("email"),
            name=user.get("name"),
        )

    async def sign_out(self, headers: Mapping[str, str]) -> int:
        response = await self._client.post(
            "/api/auth/sign-out", headers=_forwarded(headers),
        )
        return response.status_code

    async def close(self) -> None:
        await self._client.aclose()


def create_session_verifier(settings) -> HttpSessionVerifier:
    return HttpSessionVerifier(
        base_url=settings.auth_url,
        timeout_seconds=settings.auth_timeout_seconds,
    )
