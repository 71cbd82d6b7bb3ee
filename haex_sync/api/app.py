"""
Sync server — FastAPI app relaying encrypted CRDT logs between a user's devices.

The server never sees plaintext. It verifies the caller with the identity
provider, assigns per-user sequence numbers on push, and pages the log back
out on pull.

Start:
  haex-sync serve
  # or
  uvicorn haex_sync.api.app:app --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from haex_sync import APP_NAME, __version__
from haex_sync.api.middleware import (
    AccessLogMiddleware,
    AuthMiddleware,
    CorrelationMiddleware,
    UnhandledErrorMiddleware,
)
from haex_sync.api.routers import health, sync
from haex_sync.auth.verifier import AccessTokenVerifier, SupabaseTokenVerifier
from haex_sync.config import Config, get_config
from haex_sync.db.connection import close_pool
from haex_sync.sync.errors import PayloadError, SyncError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg: Config = app.state.config
    http_client: httpx.AsyncClient | None = None

    if getattr(app.state, "verifier", None) is None:
        if not cfg.auth.configured:
            raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")
        http_client = httpx.AsyncClient(timeout=cfg.auth.timeout)
        app.state.verifier = SupabaseTokenVerifier(
            cfg.auth.url, cfg.auth.api_key, http_client, timeout=cfg.auth.timeout
        )

    logger.info("%s v%s starting on port %d", APP_NAME, __version__, cfg.port)
    logger.info("Environment: %s", cfg.env)
    logger.info("CORS origins: %s", ", ".join(cfg.cors_origins))
    try:
        yield
    finally:
        if http_client is not None:
            await http_client.aclose()
            app.state.verifier = None
        await asyncio.to_thread(close_pool)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SyncError)
    async def handle_sync_error(request: Request, exc: SyncError):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(p) for p in err.get("loc", ())[1:]),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            {"error": PayloadError.default_message, "details": details},
            status_code=PayloadError.status_code,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            {"error": exc.detail}, status_code=exc.status_code, headers=exc.headers
        )


def create_app(
    config: Config | None = None,
    verifier: AccessTokenVerifier | None = None,
) -> FastAPI:
    """Build the app. A ``verifier`` passed here replaces the Supabase one."""
    cfg = config or get_config()

    app = FastAPI(title="haex sync server", version=__version__, lifespan=lifespan)
    app.state.config = cfg
    app.state.verifier = verifier

    # Last added runs first: CORS answers preflights before the auth gate and
    # wraps the 500s produced by UnhandledErrorMiddleware
    app.add_middleware(AuthMiddleware)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )

    _install_error_handlers(app)
    app.include_router(health.router)
    app.include_router(sync.router)
    return app


app = create_app()
