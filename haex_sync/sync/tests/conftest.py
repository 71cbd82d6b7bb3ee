"""Fixtures for store tests: a mocked, user-scoped connection."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

USER_ID = "11111111-1111-4111-8111-111111111111"
VAULT_ID = "3f2b8c1e-9a4d-4e7f-b6c5-0d1e2f3a4b5c"


def _mock_user_connection(target: str):
    with patch(target) as mock_uc:
        conn = MagicMock()
        cur = MagicMock()
        conn.cursor.return_value = cur
        cur.fetchone.return_value = None
        cur.fetchall.return_value = []
        ctx = mock_uc.return_value
        ctx.__enter__.return_value = conn
        ctx.__exit__.return_value = False
        yield {"user_connection": mock_uc, "conn": conn, "cursor": cur}


@pytest.fixture
def logs_db():
    yield from _mock_user_connection("haex_sync.sync.logs.user_connection")


@pytest.fixture
def vault_db():
    yield from _mock_user_connection("haex_sync.sync.vault_keys.user_connection")
