from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from psycopg import Connection, sql
from psycopg.types.json import Jsonb

from stock_ingest.parsing.types import RowOutcome


# cols that should expect jsonb conversion
_JSONB_COLS = {"original_data"}


def _adapt(col: str, value: Any) -> Any:
    """Adapt python values to DB types (e.g., `jsonb`)."""
    if col in _JSONB_COLS and value is not None:
        return Jsonb(value)
    return value


def insert_upload_errors(conn: Connection, *, run_id: UUID, failures: Sequence[RowOutcome]) -> None:
    """
    Insert failed row outcomes into `upload_errors`.

    Table/column identifiers are fixed constants. Values are parameterized.
    Successful outcomes in `failures` are skipped.
    """
    cols = ("run_id", "source_row", "error_code", "reason", "suggestions", "original_data")

    query = sql.SQL("INSERT INTO {tbl} ({cols}) VALUES ({vals})").format(
        tbl=sql.Identifier("upload_errors"),
        cols=sql.SQL(", ").join(sql.Identifier(c) for c in cols),
        vals=sql.SQL(", ").join(sql.Placeholder() for _ in cols),
    )

    params: list[tuple[Any, ...]] = []
    for o in failures:
        if o.ok:
            continue
        params.append(
            (
                run_id,
                o.source_row,
                o.code.value if o.code else None,
                o.reason,
                list(o.suggestions),
                _adapt("original_data", dict(o.original_data)),
            )
        )

    if params:
        with conn.cursor() as cur:
            cur.executemany(query, params)
    conn.commit()
