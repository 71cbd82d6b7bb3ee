"""
Log Store — append-only, per-user sequenced encrypted change log.

Sequence numbers are per user across all of the user's vaults. A push
reserves a contiguous block from the user's ``sync_sequences`` row and
inserts the batch in the same transaction: the row lock serializes
concurrent pushes of one user, and a failed insert rolls the reservation
back with it, so numbering stays gapless.

Usage:
    from haex_sync.sync.logs import push_logs, pull_logs

    receipt = push_logs(user_id, vault_id, entries)
    page = pull_logs(user_id, vault_id, after_sequence=5, limit=100)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from psycopg2.errors import UniqueViolation
from psycopg2.extras import RealDictCursor, execute_values

from haex_sync.db.connection import user_connection
from haex_sync.sync._storage import storage_errors
from haex_sync.sync.errors import ConflictError, PayloadError
from haex_sync.sync.models import (
    DEFAULT_PULL_LIMIT,
    MAX_PULL_LIMIT,
    assign_sequences,
    log_to_dict,
    paginate,
    pushed_log_to_dict,
)

logger = logging.getLogger(__name__)

DUPLICATE_TIMESTAMP = "Duplicate haexTimestamp in batch"


def _reserve_sequences(cur, user_id: str, count: int) -> int:
    """Advance the user's counter by ``count``; return its new value.

    The first push seeds the counter from any existing log rows.
    """
    cur.execute(
        """
        INSERT INTO sync_sequences (user_id, last_sequence)
        VALUES (
            %s,
            COALESCE((SELECT MAX(sequence) FROM sync_logs WHERE user_id = %s), 0) + %s
        )
        ON CONFLICT (user_id) DO UPDATE
            SET last_sequence = sync_sequences.last_sequence + %s,
                updated_at = NOW()
        RETURNING last_sequence
    """,
        (user_id, user_id, count, count),
    )
    row = cur.fetchone()
    return row["last_sequence"]


def push_logs(user_id: str, vault_id: str, entries: Sequence[dict[str, Any]]) -> dict:
    """Append a batch of encrypted entries for ``vault_id``.

    ``entries`` are dicts with ``encryptedData``, ``nonce`` and
    ``haexTimestamp``. Returns ``{count, logs}`` with one
    ``{id, sequence, haexTimestamp, createdAt}`` per entry in submission order.

    The batch is all-or-nothing: a ``haexTimestamp`` the user already pushed
    (or one repeated within the batch) raises ConflictError and nothing is
    stored.
    """
    if not entries:
        return {"count": 0, "logs": []}

    with storage_errors("push_logs"):
        try:
            with user_connection(user_id) as conn:
                cur = conn.cursor(cursor_factory=RealDictCursor)
                last = _reserve_sequences(cur, user_id, len(entries))
                sequences = assign_sequences(last, len(entries))
                rows = execute_values(
                    cur,
                    """
                    INSERT INTO sync_logs
                        (user_id, vault_id, encrypted_data, nonce, haex_timestamp, sequence)
                    VALUES %s
                    RETURNING id, sequence, haex_timestamp, created_at
                """,
                    [
                        (
                            user_id,
                            vault_id,
                            entry["encryptedData"],
                            entry["nonce"],
                            entry["haexTimestamp"],
                            seq,
                        )
                        for entry, seq in zip(entries, sequences)
                    ],
                    page_size=len(entries),
                    fetch=True,
                )
        except UniqueViolation as e:
            logger.info("Rejected push of %d entries for user %s: duplicate timestamp", len(entries), user_id)
            raise ConflictError(DUPLICATE_TIMESTAMP) from e

    rows.sort(key=lambda r: r["sequence"])
    logger.info(
        "Pushed %d entries for vault %s (user %s, sequences %d..%d)",
        len(rows), vault_id, user_id, sequences[0], sequences[-1],
    )
    return {"count": len(rows), "logs": [pushed_log_to_dict(r) for r in rows]}


def pull_logs(
    user_id: str,
    vault_id: str,
    after_sequence: int | None = None,
    limit: int = DEFAULT_PULL_LIMIT,
) -> dict:
    """Read the next page of ``vault_id``'s log after ``after_sequence``.

    Returns ``{logs, hasMore}``; logs ascend by sequence. Fetches one row
    past ``limit`` to decide ``hasMore`` without a count query.
    """
    if not 1 <= limit <= MAX_PULL_LIMIT:
        raise PayloadError(f"limit must be between 1 and {MAX_PULL_LIMIT}")

    conditions = ["user_id = %s", "vault_id = %s"]
    params: list[Any] = [user_id, vault_id]
    if after_sequence is not None:
        conditions.append("sequence > %s")
        params.append(after_sequence)
    params.append(limit + 1)

    with storage_errors("pull_logs"):
        with user_connection(user_id) as conn:
            cur = conn.cursor(cursor_factory=RealDictCursor)
            cur.execute(
                f"""
                SELECT id, encrypted_data, nonce, haex_timestamp, sequence, created_at
                FROM sync_logs
                WHERE {' AND '.join(conditions)}
                ORDER BY sequence ASC
                LIMIT %s
            """,
                params,
            )
            rows = cur.fetchall()

    page, has_more = paginate(rows, limit)
    return {"logs": [log_to_dict(r) for r in page], "hasMore": has_more}
