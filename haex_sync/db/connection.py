"""
Single connection factory with pooling for PostgreSQL.

Uses a psycopg2 threaded pool: request handlers run store calls in worker
threads (``asyncio.to_thread``) so the event loop never blocks on I/O.
There can be more worker threads than pooled connections; callers past
``pool_max`` block in ``get_connection`` until a connection is returned.

Usage:
    from haex_sync.db import user_connection

    with user_connection(user_id) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager

import psycopg2
import psycopg2.pool
from psycopg2 import sql

from haex_sync.config import get_config

logger = logging.getLogger(__name__)

_pool: psycopg2.pool.ThreadedConnectionPool | None = None
# One slot per pooled connection; callers wait here instead of hitting PoolError
_slots: threading.BoundedSemaphore | None = None
_pool_lock = threading.Lock()


def get_pool() -> psycopg2.pool.ThreadedConnectionPool:
    """Get or create the connection pool."""
    global _pool
    if _pool is not None and not _pool.closed:
        return _pool

    with _pool_lock:
        if _pool is not None and not _pool.closed:
            return _pool

        cfg = get_config().db
        logger.info(
            "Creating connection pool: %s (min=%d, max=%d)",
            cfg.safe_url,
            cfg.pool_min,
            cfg.pool_max,
        )
        try:
            _pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=cfg.pool_min,
                maxconn=cfg.pool_max,
                dsn=cfg.url,
            )
        except psycopg2.OperationalError as e:
            raise ConnectionError(
                f"Cannot connect to PostgreSQL at {cfg.safe_url}: {e}\n"
                f"Check DATABASE_URL and ensure PostgreSQL is running."
            ) from e
        return _pool


def _pool_slots() -> threading.BoundedSemaphore:
    global _slots
    if _slots is None:
        with _pool_lock:
            if _slots is None:
                _slots = threading.BoundedSemaphore(get_config().db.pool_max)
    return _slots


@contextmanager
def get_connection() -> Generator[psycopg2.extensions.connection, None, None]:
    """Get a connection from the pool, waiting while all of them are in use.

    Usage:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
        # Connection is returned to pool automatically.
        # On exception, transaction is rolled back.
    """
    pool = get_pool()
    slots = _pool_slots()
    slots.acquire()
    try:
        conn = pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)
    finally:
        slots.release()


def scope_to_user(cur, user_id: str, role: str = "") -> None:
    """Bind the current transaction to ``user_id`` for row-level policies.

    Publishes the caller as request claims (read by ``auth.uid()``) and, when
    ``role`` is set, drops to that role until the transaction ends.
    """
    claims = json.dumps({"sub": user_id, "role": role or "authenticated"})
    cur.execute(
        "SELECT set_config('request.jwt.claims', %s, true), "
        "set_config('request.jwt.claim.sub', %s, true)",
        (claims, user_id),
    )
    if role:
        cur.execute(sql.SQL("SET LOCAL ROLE {}").format(sql.Identifier(role)))


@contextmanager
def user_connection(user_id: str) -> Generator[psycopg2.extensions.connection, None, None]:
    """A pooled connection whose single transaction is scoped to ``user_id``.

    Commits on clean exit, rolls back on any exception.
    """
    role = get_config().db.role
    with get_connection() as conn:
        with conn.cursor() as cur:
            scope_to_user(cur, user_id, role)
        yield conn


def close_pool() -> None:
    """Close all connections in the pool."""
    global _pool, _slots
    if _pool is not None:
        _pool.closeall()
        _pool = None
    _slots = None
