"""Service info route."""

from __future__ import annotations

from fastapi import APIRouter, Request

from haex_sync import APP_NAME, __version__

router = APIRouter(tags=["health"])


@router.get("/")
async def service_info(request: Request):
    """Name, version and runtime environment; no auth."""
    return {
        "name": APP_NAME,
        "version": __version__,
        "status": "ok",
        "env": request.app.state.config.env,
    }
