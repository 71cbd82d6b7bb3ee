"""Pydantic request models for the sync API."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, StrictInt, field_validator

from haex_sync.sync.models import DEFAULT_PULL_LIMIT, MAX_PULL_LIMIT

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def _check_uuid(v: str, field_name: str) -> str:
    """Validate that a value is a valid UUID."""
    if not isinstance(v, str) or not _UUID_RE.match(v):
        raise ValueError(f"{field_name} must be a valid UUID")
    return v


class _VaultScoped(BaseModel):
    vaultId: str

    @field_validator("vaultId", mode="before")
    @classmethod
    def validate_vault_id(cls, v: object, info: object) -> str:
        return _check_uuid(v, info.field_name)  # type: ignore[arg-type, attr-defined]


# ─── Vault keys ──────────────────────────────────────────────────────────


class StoreVaultKeyRequest(_VaultScoped):
    encryptedVaultKey: str
    salt: str
    nonce: str


# ─── Logs ────────────────────────────────────────────────────────────────


class PushLogEntry(BaseModel):
    encryptedData: str
    nonce: str
    haexTimestamp: str


class PushLogsRequest(_VaultScoped):
    logs: list[PushLogEntry]


class PullLogsRequest(_VaultScoped):
    # Optional, but an explicit null is rejected
    afterSequence: StrictInt | None = None
    limit: StrictInt = Field(DEFAULT_PULL_LIMIT, ge=1, le=MAX_PULL_LIMIT)

    @field_validator("afterSequence", mode="before")
    @classmethod
    def reject_null_cursor(cls, v: object) -> object:
        if v is None:
            raise ValueError("afterSequence must be an integer when present")
        return v
