"""
The upload pipeline: read -> parse -> resolve/validate -> write -> report.

Rows are processed one at a time in ascending `source_row` order. Each row
ends in exactly one `RowOutcome`; a rejected or failed row never stops its
siblings. Writes are at-least-once with no rollback: rows written before a
store failure stay written, and the failing rows are reported.
"""
from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from stock_ingest.config import UploadSettings, get_upload_settings
from stock_ingest.db.errors import DuplicateKeyError, StoreWriteError
from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.types import ErrorCode, RowOutcome, RowRejected
from stock_ingest.resolve.context import ResolutionContext, build_context
from stock_ingest.uploads.base import RowContext, UploadHandler
from stock_ingest.uploads.registry import get_upload_handler
from stock_ingest.validate.state import BatchState

from .readers import read_csv_rows
from .summary import UploadResult

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int], None]      # receives a whole percentage, 0-100


def process_row(source_row: int, raw: Mapping[str, Any], *, handler: UploadHandler, rc: RowContext) -> RowOutcome:
    """Parse, prepare and write one row. Never raises for row-level problems."""
    parsed = handler.profile.parse(raw, source_row=source_row)
    if isinstance(parsed, RowOutcome):
        logger.debug("row %d rejected while parsing: %s", source_row, parsed.reason)
        return parsed

    original = parsed.raw_payload
    try:
        prepared = handler.prepare(parsed.values, rc)
        if not rc.state.dry_run:
            handler.write(rc.store, prepared)
    except RowRejected as e:
        logger.debug("row %d rejected: [%s] %s", source_row, e.code.value, e.reason)
        return RowOutcome.failure(
            source_row=source_row,
            original_data=original,
            code=e.code,
            reason=e.reason,
            suggestions=e.suggestions,
        )
    except DuplicateKeyError as e:
        logger.debug("row %d hit a unique constraint: %s", source_row, e)
        return RowOutcome.failure(
            source_row=source_row,
            original_data=original,
            code=ErrorCode.duplicate_key,
            reason=f"Duplicate key: {e}",
        )
    except StoreWriteError as e:
        logger.warning("row %d write failed: %s", source_row, e)
        return RowOutcome.failure(
            source_row=source_row,
            original_data=original,
            code=ErrorCode.write_failure,
            reason=f"Write failed: {e}",
        )

    handler.accept(rc.state, prepared, source_row=source_row, ctx=rc.ctx)
    return RowOutcome.success(source_row=source_row, original_data=original)


def process_rows(
    rows: Sequence[tuple[int, Mapping[str, Any]]],
    *,
    handler: UploadHandler,
    ctx: ResolutionContext,
    state: BatchState,
    settings: UploadSettings,
    store: InventoryStore,
    progress: ProgressFn | None = None,
) -> list[RowOutcome]:
    """
    One outcome per row, in input order.

    `rows` must be in strictly ascending `source_row` order: the running stock
    balance depends on it. Raises `ValueError` otherwise, before anything is
    processed.
    """
    last = 0
    for source_row, _ in rows:
        if source_row <= last:
            raise ValueError(
                f"rows must be in ascending source_row order, got row {source_row} after row {last}"
            )
        last = source_row

    rc = RowContext(ctx=ctx, state=state, settings=settings, store=store)
    outcomes: list[RowOutcome] = []
    total = len(rows)
    for i, (source_row, raw) in enumerate(rows, start=1):
        outcomes.append(process_row(source_row, raw, handler=handler, rc=rc))
        if progress is not None:
            progress(i * 100 // total)
    return outcomes


def run_upload(
    store: InventoryStore,
    *,
    upload_type: str,
    source: Path | str | None = None,
    text: str | None = None,
    settings: UploadSettings | None = None,
    progress: ProgressFn | None = None,
    dry_run: bool = False,
    today: date | None = None,
) -> UploadResult:
    """
    Run one upload end to end against `store`.

    `source` is the CSV file's path; CSV text already in memory goes in
    `text` instead. Raises `UploadAborted` (empty/unreadable file, reference
    data unavailable) and `ValueError` for an unknown upload type. Every other problem is reported per row.
    """
    handler = get_upload_handler(upload_type)
    settings = settings or get_upload_settings()

    rows = read_csv_rows(source, text=text)
    logger.info("%s upload: %d data rows%s", upload_type, len(rows), " (dry run)" if dry_run else "")

    ctx = build_context(store, upload_type=upload_type, key_fn=handler.natural_keys, settings=settings)
    state = BatchState(today=today or date.today(), dry_run=dry_run)

    outcomes = process_rows(
        rows,
        handler=handler,
        ctx=ctx,
        state=state,
        settings=settings,
        store=store,
        progress=progress,
    )
    result = UploadResult(
        upload_type=upload_type,
        outcomes=outcomes,
        dry_run=dry_run,
        input_path=str(source) if isinstance(source, Path) else "",
    )
    logger.info("%s", result.render_one_line())
    return result
