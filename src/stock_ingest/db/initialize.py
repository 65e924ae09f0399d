from __future__ import annotations

import logging
from pathlib import Path

import psycopg

from stock_ingest.db.connect import connect

logger = logging.getLogger(__name__)


def _run_sql_file(conn: psycopg.Connection, sql_path: Path) -> None:
    """Read and execute a `.sql` file."""
    sql = sql_path.read_text(encoding="utf-8")

    # one statement at a time, so a failure names the statement that broke
    statements = [s.strip() for s in sql.split(";") if s.strip()]

    with conn.cursor() as cur:
        for i, stmt in enumerate(statements, 1):
            try:
                cur.execute(stmt)
            except psycopg.Error as e:
                raise RuntimeError(
                    f"DB init failed in {sql_path} on statement #{i}\n"
                    f"Postgres raised with: {e}\n"
                    f"--- statement ---\n{stmt}\n--- end ---\n"
                ) from e
    conn.commit()
    logger.info("applied %s (%d statements)", sql_path.name, len(statements))


def db_init(*, sql_path: Path, database_url: str | None = None) -> None:
    """
    Read a provided SQL init path to initialize (or re-initialize) the database.

    - If `sql_path` is a dir, run all `*.sql` files in ascending name order.
    - If `sql_path` is just one file, run just that file.
    """
    with connect(database_url) as conn:
        if sql_path.is_dir():
            for p in sorted(sql_path.glob("*.sql")):
                _run_sql_file(conn, p)
        else:
            _run_sql_file(conn, sql_path)
