"""
Vault-Key Store — one encrypted vault key per (user, vault).

The key blob, salt and nonce are opaque to the server. Keys are created once
and read by any of the owner's devices; this service never updates or
deletes them (rows go away with the owning user).
"""

from __future__ import annotations

import logging

from psycopg2.errors import UniqueViolation
from psycopg2.extras import RealDictCursor

from haex_sync.db.connection import user_connection
from haex_sync.sync._storage import storage_errors
from haex_sync.sync.errors import ConflictError, NotFoundError
from haex_sync.sync.models import vault_key_created_to_dict, vault_key_to_dict

logger = logging.getLogger(__name__)

VAULT_KEY_EXISTS = "Vault key already exists for this vault"
VAULT_KEY_NOT_FOUND = "Vault key not found"


def create_vault_key(
    user_id: str,
    vault_id: str,
    encrypted_vault_key: str,
    salt: str,
    nonce: str,
) -> dict:
    """Store a vault key. Returns ``{id, vaultId, createdAt}``.

    Raises ConflictError if the user already has a key for ``vault_id``. The
    unique index decides, so two devices racing on the same vault cannot both
    succeed.
    """
    with storage_errors("create_vault_key"):
        try:
            with user_connection(user_id) as conn:
                cur = conn.cursor(cursor_factory=RealDictCursor)
                cur.execute(
                    """
                    INSERT INTO vault_keys (user_id, vault_id, encrypted_vault_key, salt, nonce)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (user_id, vault_id) DO NOTHING
                    RETURNING id, vault_id, created_at
                """,
                    (user_id, vault_id, encrypted_vault_key, salt, nonce),
                )
                row = cur.fetchone()
                if row is None:
                    raise ConflictError(VAULT_KEY_EXISTS)
        except UniqueViolation as e:
            raise ConflictError(VAULT_KEY_EXISTS) from e

    logger.info("Stored vault key for vault %s (user %s)", vault_id, user_id)
    return vault_key_created_to_dict(row)


def get_vault_key(user_id: str, vault_id: str) -> dict:
    """Fetch the caller's key for ``vault_id``. Raises NotFoundError if absent."""
    with storage_errors("get_vault_key"):
        with user_connection(user_id) as conn:
            cur = conn.cursor(cursor_factory=RealDictCursor)
            cur.execute(
                """
                SELECT vault_id, encrypted_vault_key, salt, nonce, created_at
                FROM vault_keys
                WHERE user_id = %s AND vault_id = %s
            """,
                (user_id, vault_id),
            )
            row = cur.fetchone()

    if row is None:
        raise NotFoundError(VAULT_KEY_NOT_FOUND)
    return vault_key_to_dict(row)
