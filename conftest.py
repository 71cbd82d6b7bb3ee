"""
Root-level shared test fixtures.

Inherited by every test suite under the repository root.
"""

from __future__ import annotations

import pytest

SYNC_ENV_VARS = [
    "DATABASE_URL",
    "HAEX_SYNC_DB_POOL_MIN",
    "HAEX_SYNC_DB_POOL_MAX",
    "HAEX_SYNC_DB_ROLE",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_TIMEOUT",
    "HOST",
    "PORT",
    "CORS_ORIGIN",
    "NODE_ENV",
    "HAEX_SYNC_ENV",
    "HAEX_SYNC_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove sync server env vars and hide any developer .env file."""
    for key in SYNC_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("haex_sync.config._ENV_PATH", tmp_path / ".env")
    return tmp_path
