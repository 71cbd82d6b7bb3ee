"""Translate driver failures into the sync error taxonomy."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager

import psycopg2

from haex_sync.sync.errors import InternalError, SyncError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(operation: str) -> Generator[None, None, None]:
    """Log unexpected storage failures and surface them as ``InternalError``.

    ``SyncError`` raised inside the block passes through untouched.
    """
    try:
        yield
    except SyncError:
        raise
    except (psycopg2.Error, ConnectionError) as e:
        logger.exception("%s failed: %s", operation, type(e).__name__)
        raise InternalError() from e
