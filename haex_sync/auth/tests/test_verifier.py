"""Tests for bearer-token extraction and the Supabase verifier."""

from __future__ import annotations

import httpx
import pytest

from haex_sync.auth.verifier import SupabaseTokenVerifier, UserContext, extract_bearer_token
from haex_sync.sync.errors import UnauthorizedError

SUPABASE_URL = "https://project.supabase.co/"


class TestExtractBearerToken:
    def test_valid(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_strips_whitespace(self):
        assert extract_bearer_token("Bearer   abc  ") == "abc"

    @pytest.mark.parametrize("header", [None, "", "abc", "Bearer", "Bearer ", "Bearer    ", "Token abc", "bearer abc"])
    def test_rejects(self, header):
        with pytest.raises(UnauthorizedError):
            extract_bearer_token(header)


def _verifier(handler) -> tuple[SupabaseTokenVerifier, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseTokenVerifier(SUPABASE_URL, "anon-key", client, timeout=2.0), client


class TestSupabaseTokenVerifier:
    @pytest.mark.asyncio
    async def test_resolves_user(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers["apikey"]
            seen["auth"] = request.headers["authorization"]
            return httpx.Response(200, json={
                "id": "11111111-1111-4111-8111-111111111111",
                "email": "a@example.com",
                "role": "authenticated",
            })

        verifier, client = _verifier(handler)
        async with client:
            user = await verifier.verify("tok")

        assert user == UserContext(
            user_id="11111111-1111-4111-8111-111111111111",
            email="a@example.com",
            role="authenticated",
        )
        assert seen["url"] == "https://project.supabase.co/auth/v1/user"
        assert seen["apikey"] == "anon-key"
        assert seen["auth"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_optional_fields_absent(self):
        verifier, client = _verifier(lambda r: httpx.Response(200, json={"id": "u1"}))
        async with client:
            user = await verifier.verify("tok")
        assert user.user_id == "u1"
        assert user.email is None
        assert user.role is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(401, json={"msg": "invalid JWT"}),
        httpx.Response(403, json={"msg": "expired"}),
        httpx.Response(500, text="oops"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"email": "no-id@example.com"}),
        httpx.Response(200, json=["unexpected"]),
    ])
    async def test_rejections(self, response):
        verifier, client = _verifier(lambda r: response)
        async with client:
            with pytest.raises(UnauthorizedError):
                await verifier.verify("tok")

    @pytest.mark.asyncio
    async def test_transport_error_is_unauthorized(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        verifier, client = _verifier(handler)
        async with client:
            with pytest.raises(UnauthorizedError):
                await verifier.verify("tok")
