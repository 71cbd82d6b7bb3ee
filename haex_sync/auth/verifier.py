"""
Access-token verifier — resolves a bearer token to a user identity.

The server never issues or caches tokens: every request is verified against
the identity provider (Supabase Auth ``GET /auth/v1/user``). All failure
modes collapse into a single UnauthorizedError so callers cannot tell a
missing header from a rejected token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from haex_sync.sync.errors import UnauthorizedError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class UserContext:
    """The authenticated caller."""

    user_id: str
    email: str | None = None
    role: str | None = None


class AccessTokenVerifier(Protocol):
    async def verify(self, token: str) -> UserContext: ...


def extract_bearer_token(header: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not header or not header.startswith(BEARER_PREFIX):
        raise UnauthorizedError()
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthorizedError()
    return token


class SupabaseTokenVerifier:
    """Verify tokens by asking Supabase Auth who they belong to."""

    def __init__(
        self,
        url: str,
        api_key: str,
        client: httpx.AsyncClient,
        timeout: float = 10.0,
    ) -> None:
        self.endpoint = f"{url.rstrip('/')}/auth/v1/user"
        self.api_key = api_key
        self.client = client
        self.timeout = timeout

    async def verify(self, token: str) -> UserContext:
        try:
            r = await self.client.get(
                self.endpoint,
                headers={"apikey": self.api_key, "Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Token verification request failed: %s", type(e).__name__)
            raise UnauthorizedError() from e

        if r.status_code != 200:
            logger.info("Token rejected by identity provider (HTTP %d)", r.status_code)
            raise UnauthorizedError()

        try:
            data = r.json()
        except ValueError as e:
            logger.warning("Identity provider returned a non-JSON body")
            raise UnauthorizedError() from e

        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            logger.warning("Identity provider response carried no user id")
            raise UnauthorizedError()

        return UserContext(user_id=str(user_id), email=data.get("email"), role=data.get("role"))
