"""
Shared fixtures for the sync API test suite.

Drives the FastAPI app in-process through httpx's ASGITransport with a fake
token verifier; store functions are patched per test.
"""

from __future__ import annotations

import uuid

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport

from haex_sync.api.app import create_app
from haex_sync.auth.verifier import UserContext
from haex_sync.config import Config
from haex_sync.sync.errors import UnauthorizedError

USER_A = "11111111-1111-4111-8111-111111111111"
USER_B = "22222222-2222-4222-8222-222222222222"
VAULT_ID = "3f2b8c1e-9a4d-4e7f-b6c5-0d1e2f3a4b5c"


class FakeVerifier:
    """Maps known tokens to users; everything else is rejected."""

    def __init__(self, tokens: dict[str, UserContext]) -> None:
        self.tokens = tokens
        self.calls: list[str] = []

    async def verify(self, token: str) -> UserContext:
        self.calls.append(token)
        if token not in self.tokens:
            raise UnauthorizedError()
        return self.tokens[token]


@pytest.fixture
def verifier():
    return FakeVerifier({
        "token-a": UserContext(user_id=USER_A, email="a@example.com", role="authenticated"),
        "token-b": UserContext(user_id=USER_B, email="b@example.com", role="authenticated"),
    })


@pytest.fixture
def app_config():
    return Config(cors_origins=["https://app.example.com"], env="test")


@pytest.fixture
def app(app_config, verifier):
    return create_app(config=app_config, verifier=verifier)


@pytest_asyncio.fixture
async def test_client(app):
    """Async HTTP client wrapping the app via ASGITransport."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_a():
    return {"Authorization": "Bearer token-a"}


@pytest.fixture
def auth_b():
    return {"Authorization": "Bearer token-b"}


@pytest.fixture
def vault_id():
    return VAULT_ID


@pytest.fixture
def random_vault_id():
    return str(uuid.uuid4())
