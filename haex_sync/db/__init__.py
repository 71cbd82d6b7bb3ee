"""Database connection management for the sync server."""

from haex_sync.db.connection import close_pool, get_connection, get_pool, user_connection

__all__ = ["close_pool", "get_connection", "get_pool", "user_connection"]
