from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from .errors import EmptyFileError, UnreadableFileError

# the header occupies spreadsheet row 1
FIRST_DATA_ROW = 2


def _is_blank(row: Mapping[Any, Any]) -> bool:
    for v in row.values():
        if isinstance(v, list):
            # surplus cells collected under the `None` key
            if any(str(x).strip() for x in v):
                return False
        elif v is not None and str(v).strip():
            return False
    return True


def _iter_records(lines: Iterable[str], *, origin: str) -> Iterator[tuple[int, Mapping[str, Any]]]:
    reader = csv.DictReader(lines, restval="")
    try:
        fieldnames = reader.fieldnames
    except csv.Error as e:
        raise UnreadableFileError(f"{origin}: malformed CSV header: {e}") from e
    if not fieldnames or not any(h and h.strip() for h in fieldnames):
        raise EmptyFileError(f"{origin}: file is empty or has no header row")

    emitted = 0
    source_row = FIRST_DATA_ROW
    try:
        for row in reader:
            # blank rows keep their number so row numbers match the spreadsheet
            if not _is_blank(row):
                emitted += 1
                yield source_row, row
            source_row += 1
    except csv.Error as e:
        raise UnreadableFileError(f"{origin}: malformed CSV near data row {source_row}: {e}") from e

    if emitted == 0:
        raise EmptyFileError(f"{origin}: file has a header but no data rows")


def stream_csv_rows(path: Path) -> Iterator[tuple[int, Mapping[str, Any]]]:
    """
    Yields `(source_row, dict)` for CSV data rows.

    `source_row` is the spreadsheet row number: the header is row 1, so the
    first data row is 2. All-blank rows are skipped but still counted.
    UTF-8 with or without a byte order mark.

    Raises `EmptyFileError` / `UnreadableFileError`.
    """
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            yield from _iter_records(f, origin=str(path))
    except UnicodeDecodeError as e:
        raise UnreadableFileError(f"{path}: not valid UTF-8 text ({e.reason} at byte {e.start})") from e
    except OSError as e:
        raise UnreadableFileError(f"{path}: cannot read file: {e.strerror or e}") from e


def stream_csv_text(text: str, *, origin: str = "<upload>") -> Iterator[tuple[int, Mapping[str, Any]]]:
    """Like `stream_csv_rows`, over already-decoded text."""
    yield from _iter_records(io.StringIO(text.lstrip("\ufeff"), newline=""), origin=origin)


def read_csv_rows(source: Path | str | None = None, *, text: str | None = None) -> list[tuple[int, Mapping[str, Any]]]:
    """
    Read a whole upload up front so the row count is known before processing.

    `source` is a file on disk, as a `Path` or a `str` path. CSV text already
    in memory is passed as `text` instead. Exactly one of the two is given.
    """
    if text is not None:
        if source is not None:
            raise ValueError("pass either source or text, not both")
        return list(stream_csv_text(text))
    if source is None:
        raise ValueError("one of source or text is required")
    return list(stream_csv_rows(Path(source)))
