"""Sync routes: vault-key exchange, log push and pull.

Every route here sits behind AuthMiddleware. Store calls are blocking
psycopg2 work, so they run in a worker thread.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from haex_sync.api.deps import get_current_user
from haex_sync.api.schemas import PullLogsRequest, PushLogsRequest, StoreVaultKeyRequest
from haex_sync.auth.verifier import UserContext
from haex_sync.sync.logs import pull_logs, push_logs
from haex_sync.sync.vault_keys import create_vault_key, get_vault_key

router = APIRouter(prefix="/sync", tags=["sync"])


# ─── Vault keys ──────────────────────────────────────────────────────────


@router.post("/vault-key")
async def api_store_vault_key(
    body: StoreVaultKeyRequest,
    user: UserContext = Depends(get_current_user),
):
    vault_key = await asyncio.to_thread(
        create_vault_key,
        user.user_id,
        body.vaultId,
        body.encryptedVaultKey,
        body.salt,
        body.nonce,
    )
    return JSONResponse(
        {"message": "Vault key stored successfully", "vaultKey": vault_key},
        status_code=201,
    )


@router.get("/vault-key/{vault_id}")
async def api_get_vault_key(
    vault_id: str,
    user: UserContext = Depends(get_current_user),
):
    vault_key = await asyncio.to_thread(get_vault_key, user.user_id, vault_id)
    return {"vaultKey": vault_key}


# ─── Logs ────────────────────────────────────────────────────────────────


@router.post("/push")
async def api_push_logs(
    body: PushLogsRequest,
    user: UserContext = Depends(get_current_user),
):
    entries = [entry.model_dump() for entry in body.logs]
    result = await asyncio.to_thread(push_logs, user.user_id, body.vaultId, entries)
    return {"message": "Logs pushed successfully", **result}


@router.post("/pull")
async def api_pull_logs(
    body: PullLogsRequest,
    user: UserContext = Depends(get_current_user),
):
    return await asyncio.to_thread(
        pull_logs, user.user_id, body.vaultId, body.afterSequence, body.limit
    )
