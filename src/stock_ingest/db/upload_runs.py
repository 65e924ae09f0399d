from __future__ import annotations

from pathlib import Path
from typing import Literal
from uuid import UUID

from psycopg import Connection


RunStatus = Literal["running", "succeeded", "failed"]


def insert_upload_run(conn: Connection, *, input_path: Path | str, upload_type: str, dry_run: bool = False) -> UUID:
    """
    Create an `upload_runs` row, returns `run_id`.

    Committed immediately. The run ledger will persist even if later steps error.
    """
    row = conn.execute(
        """
        INSERT INTO upload_runs (input_path, upload_type, dry_run, status)
        VALUES (%s, %s, %s, 'running')
        RETURNING run_id
        """,
        (str(input_path), upload_type, dry_run),
    ).fetchone()
    assert row is not None
    conn.commit()
    return row[0]


def update_upload_run_status(
    conn: Connection,
    *,
    run_id: UUID,
    status: RunStatus,
    total: int | None = None,
    succeeded: int | None = None,
    failed: int | None = None,
) -> None:
    """Close out an `upload_runs` row with its final status and counts, then commit."""
    conn.execute(
        """
        UPDATE upload_runs
        SET status = %s,
            total_rows = COALESCE(%s, total_rows),
            succeeded_rows = COALESCE(%s, succeeded_rows),
            failed_rows = COALESCE(%s, failed_rows),
            finished_at = now()
        WHERE run_id = %s
        """,
        (status, total, succeeded, failed, run_id),
    )
    conn.commit()
