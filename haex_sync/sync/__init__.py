"""
Encrypted change-log sync: vault-key exchange and per-user sequenced log.

Usage:
    from haex_sync.sync import push_logs, pull_logs, create_vault_key, get_vault_key

    result = push_logs(user_id, vault_id, [{"encryptedData": "...", "nonce": "...", "haexTimestamp": "..."}])
    page = pull_logs(user_id, vault_id, after_sequence=result["logs"][-1]["sequence"] - 1)
"""

from haex_sync.sync.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    PayloadError,
    SyncError,
    UnauthorizedError,
)
from haex_sync.sync.logs import pull_logs, push_logs
from haex_sync.sync.vault_keys import create_vault_key, get_vault_key

__all__ = [
    "ConflictError",
    "InternalError",
    "NotFoundError",
    "PayloadError",
    "SyncError",
    "UnauthorizedError",
    "create_vault_key",
    "get_vault_key",
    "pull_logs",
    "push_logs",
]
