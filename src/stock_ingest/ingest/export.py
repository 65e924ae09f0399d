"""
CSV exports: blank templates, retry-ready files and error reports.

All functions return CSV text; the caller decides where it goes.
"""
from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Mapping, Sequence

from stock_ingest.parsing.registry import get_profile_spec

from .summary import UploadResult

Corrections = Mapping[int, Mapping[str, Any]]   # source_row -> {column: corrected value}


def _to_csv(header: Sequence[str], rows: Iterable[Mapping[str, Any]]) -> str:
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=list(header), extrasaction="ignore", lineterminator="\n")
    w.writeheader()
    for row in rows:
        w.writerow({k: "" if v is None else v for k, v in row.items()})
    return buf.getvalue()


def template_csv(upload_type: str, *, with_samples: bool = True) -> str:
    """The downloadable template for `upload_type`: header plus example rows."""
    spec = get_profile_spec(upload_type)
    return _to_csv(spec.template_headers, spec.template_sample if with_samples else [])


def _columns(rows: Iterable[Mapping[str, Any]]) -> list[str]:
    """Union of column names, in first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        for k in row:
            seen.setdefault(str(k), None)
    return list(seen)


def retry_ready_csv(
    result: UploadResult,
    corrections: Corrections | None = None,
    *,
    include_successful: bool = False,
) -> str:
    """
    Rows to resubmit, with the uploaded file's own columns.

    Failed rows carry their original values, overlaid with `corrections`
    for their `source_row`. With `include_successful`, rows that already went
    in are kept too; resubmitting them is rejected as a duplicate and writes
    nothing new.
    """
    corrections = corrections or {}
    rows: list[dict[str, Any]] = []
    for o in result.outcomes:
        if o.ok and not include_successful:
            continue
        row = dict(o.original_data)
        row.update(corrections.get(o.source_row, {}))
        rows.append(row)

    header = _columns(rows)
    if not header:
        header = list(get_profile_spec(result.upload_type).template_headers)
    return _to_csv(header, rows)


_REPORT_COLUMNS: tuple[str, ...] = ("row", "error_code", "reason", "suggestions")


def _report_names(cols: Sequence[str]) -> dict[str, str]:
    """Uploaded columns named like a report column are exported as `original_<name>`."""
    taken = {*_REPORT_COLUMNS, *cols}
    out: dict[str, str] = {}
    for col in cols:
        name = col
        while name in _REPORT_COLUMNS or (name != col and name in taken):
            name = f"original_{name}"
        taken.add(name)
        out[col] = name
    return out


def error_report_csv(result: UploadResult) -> str:
    """One line per failed row: row number, code, reason, suggestions, then the original values."""
    failures = result.errors
    renamed = _report_names(_columns(o.original_data for o in failures))
    header = [*_REPORT_COLUMNS, *renamed.values()]

    rows = []
    for o in failures:
        row: dict[str, Any] = {renamed[str(k)]: v for k, v in o.original_data.items()}
        row.update(
            row=o.source_row,
            error_code=o.code.value if o.code else "",
            reason=o.reason,
            suggestions="; ".join(o.suggestions),
        )
        rows.append(row)
    return _to_csv(header, rows)
