"""
SQL migrations for the sync schema.

Files in ``migrations/`` are named ``NNN_description.sql`` and applied in
version order, each in its own transaction. Applied versions are recorded in
``schema_migrations`` with a SHA-256 of the file, so a file edited after it
was applied shows up as DRIFT in ``haex-sync migrate status``.
"""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import NamedTuple

from psycopg2.extras import RealDictCursor

from haex_sync.db.connection import get_connection

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# 001_name.sql, 002b_name.sql
_FILENAME_RE = re.compile(r"^(\d+[a-z]?)_.+\.sql$")

_HISTORY_DDL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        version     TEXT PRIMARY KEY,
        filename    TEXT NOT NULL,
        applied_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        checksum    TEXT
    )
"""


class Migration(NamedTuple):
    version: str
    path: Path


def checksum(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def discover(migrations_dir: Path | None = None) -> list[Migration]:
    """Versioned ``.sql`` files in ``migrations_dir``, oldest first."""
    found: list[Migration] = []
    for path in sorted((migrations_dir or MIGRATIONS_DIR).glob("*.sql")):
        m = _FILENAME_RE.match(path.name)
        if m:
            found.append(Migration(m.group(1), path))
    return found


def _history() -> dict[str, dict]:
    """Recorded migrations by version; creates the history table on first use."""
    with get_connection() as conn:
        cur = conn.cursor(cursor_factory=RealDictCursor)
        cur.execute(_HISTORY_DDL)
        cur.execute("SELECT version, filename, applied_at, checksum FROM schema_migrations")
        return {r["version"]: r for r in cur.fetchall()}


def status(migrations_dir: Path | None = None) -> list[dict]:
    """One row per migration file: ``version``, ``filename``, ``status``, ``applied_at``.

    ``status`` is ``applied``, ``pending`` or ``DRIFT``.
    """
    history = _history()
    rows: list[dict] = []
    for mig in discover(migrations_dir):
        record = history.get(mig.version)
        if record is None:
            state = "pending"
        elif record.get("checksum") and record["checksum"] != checksum(mig.path):
            state = "DRIFT"
        else:
            state = "applied"
        rows.append({
            "version": mig.version,
            "filename": mig.path.name,
            "status": state,
            "applied_at": record["applied_at"] if record else None,
        })
    return rows


def apply(
    version: str | None = None,
    dry_run: bool = False,
    migrations_dir: Path | None = None,
) -> list[str]:
    """Apply pending migrations, or only ``version``. Returns the versions applied.

    With ``dry_run`` nothing is executed and the result lists what would run.
    A failing file is rolled back and re-raised; earlier files stay applied.
    """
    history = _history()
    pending = [
        mig for mig in discover(migrations_dir)
        if mig.version not in history and version in (None, mig.version)
    ]
    if not pending:
        logger.info("Schema is up to date")
        return []

    if dry_run:
        for mig in pending:
            logger.info("[dry-run] Would apply %s", mig.path.name)
        return [mig.version for mig in pending]

    for mig in pending:
        try:
            with get_connection() as conn:
                cur = conn.cursor()
                cur.execute(mig.path.read_text())
                cur.execute(
                    "INSERT INTO schema_migrations (version, filename, checksum) VALUES (%s, %s, %s)",
                    (mig.version, mig.path.name, checksum(mig.path)),
                )
        except Exception:
            logger.error("Migration %s failed and was rolled back", mig.path.name)
            raise
        logger.info("Applied %s", mig.path.name)
    return [mig.version for mig in pending]
