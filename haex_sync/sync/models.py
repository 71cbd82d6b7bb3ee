"""
Sync response models — shape converters for database rows.

Converts raw PostgreSQL row dicts (RealDictCursor) into the API's camelCase
response shapes, plus the pure helpers for sequence assignment and paging.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

DEFAULT_PULL_LIMIT = 100
MAX_PULL_LIMIT = 1000


def _iso(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def vault_key_created_to_dict(row: dict) -> dict:
    """Creation receipt: never echoes the key material."""
    return {
        "id": str(row["id"]),
        "vaultId": row["vault_id"],
        "createdAt": _iso(row.get("created_at")),
    }


def vault_key_to_dict(row: dict) -> dict:
    return {
        "vaultId": row["vault_id"],
        "encryptedVaultKey": row["encrypted_vault_key"],
        "salt": row["salt"],
        "nonce": row["nonce"],
        "createdAt": _iso(row.get("created_at")),
    }


def pushed_log_to_dict(row: dict) -> dict:
    return {
        "id": str(row["id"]),
        "sequence": row["sequence"],
        "haexTimestamp": row["haex_timestamp"],
        "createdAt": _iso(row.get("created_at")),
    }


def log_to_dict(row: dict) -> dict:
    return {
        "id": str(row["id"]),
        "encryptedData": row["encrypted_data"],
        "nonce": row["nonce"],
        "haexTimestamp": row["haex_timestamp"],
        "sequence": row["sequence"],
        "createdAt": _iso(row.get("created_at")),
    }


def assign_sequences(last_sequence: int, count: int) -> list[int]:
    """Consecutive sequence numbers for a batch reserved up to ``last_sequence``.

    ``last_sequence`` is the counter value *after* reserving ``count`` slots,
    so the batch occupies ``last_sequence - count + 1 .. last_sequence``.
    """
    first = last_sequence - count + 1
    return list(range(first, last_sequence + 1))


def paginate(rows: list, limit: int) -> tuple[list, bool]:
    """Trim a ``limit + 1`` fetch to ``limit`` rows and report whether more exist."""
    return rows[:limit], len(rows) > limit
