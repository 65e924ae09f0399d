from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from uuid import UUID

from psycopg import Connection

from stock_ingest.config import UploadSettings
from stock_ingest.db.store import PostgresStore
from stock_ingest.db.upload_errors import insert_upload_errors
from stock_ingest.db.upload_runs import insert_upload_run, update_upload_run_status
from stock_ingest.ingest.pipeline import ProgressFn, run_upload
from stock_ingest.ingest.summary import UploadResult

logger = logging.getLogger(__name__)


def upload_file(
    conn: Connection,
    *,
    input_path: Path,
    upload_type: str,
    settings: UploadSettings | None = None,
    dry_run: bool = False,
    progress: ProgressFn | None = None,
) -> UploadResult:
    """
    End-to-end upload orchestrator:
      - Create an `upload_runs` row (committed immediately),
      - Run the upload pipeline, each row written in its own transaction,
      - Persist every failed row to `upload_errors`,
      - And close the run as `succeeded` with its counts.

    Raises on batch-fatal conditions (`UploadAborted`) and infrastructure
    errors; the run is then marked `failed`. Rows written before the failure
    stay written.
    """
    run_id: UUID = insert_upload_run(conn, input_path=input_path, upload_type=upload_type, dry_run=dry_run)

    try:
        result = run_upload(
            PostgresStore(conn),
            upload_type=upload_type,
            source=input_path,
            settings=settings,
            progress=progress,
            dry_run=dry_run,
        )
        insert_upload_errors(conn, run_id=run_id, failures=result.errors)
        update_upload_run_status(
            conn,
            run_id=run_id,
            status="succeeded",
            total=result.total,
            succeeded=result.success_count,
            failed=result.error_count,
        )
    except Exception:
        # revert the open transaction, if any (the run ledger is already committed)
        conn.rollback()
        update_upload_run_status(conn, run_id=run_id, status="failed")
        logger.error("upload %s failed", run_id)
        raise

    return replace(result, run_id=run_id, input_path=str(input_path))
