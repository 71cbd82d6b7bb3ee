"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from haex_sync.auth.verifier import UserContext
from haex_sync.sync.errors import UnauthorizedError


def get_current_user(request: Request) -> UserContext:
    """The caller resolved by AuthMiddleware."""
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthorizedError()
    return user
