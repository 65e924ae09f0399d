from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from stock_ingest.cli.loader import upload_file
from stock_ingest.config import get_upload_settings
from stock_ingest.db.connect import connect
from stock_ingest.db.initialize import db_init
from stock_ingest.ingest.errors import UploadAborted
from stock_ingest.ingest.export import error_report_csv, retry_ready_csv, template_csv
from stock_ingest.parsing.registry import UPLOAD_TYPES


def _write_or_print(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"Wrote {output}")
    else:
        sys.stdout.write(text)


def main(argv: list[str] | None = None) -> int:
    """
    A CLI for bulk CSV uploads into the inventory database.

    The `cmd` options are:
    ## upload:
    Validate and write one CSV file of the given upload type.
    - `--type` is the upload type, `--input` the CSV path,
    - `--dry-run` validates every row without writing,
    - `--retry-out` / `--errors-out` write the failed rows for correction.

    A summary and the first errors print in the terminal upon completion.

    ### Example upload usage:
    - `stock-ingest upload --type opening_stock --input opening.csv`
    - `stock-ingest upload --type items --input items.csv --create-missing-categories`

    ## template:
    Print (or `--output`) the CSV template for an upload type.

    ## db:
    Database controlling commands.
    - `init` applies the schema, `--sql` points at a `.sql` file or a directory of them.
    """
    p = argparse.ArgumentParser(prog="stock-ingest")
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    sub = p.add_subparsers(dest="cmd", required=True)

    # upload cmd
    upload = sub.add_parser("upload", help="Upload a CSV file (rejected rows are reported, not written).")
    upload.add_argument("--type", required=True, choices=UPLOAD_TYPES, dest="upload_type")
    upload.add_argument("--input", required=True, help="Path to the CSV file.")
    upload.add_argument("--dry-run", action="store_true", help="Validate every row without writing.")
    upload.add_argument(
        "--create-missing-categories",
        action="store_true",
        default=None,
        help="Items upload: create categories that have no close match.",
    )
    upload.add_argument("--retry-out", default=None, help="Write failed rows as a CSV ready to fix and resubmit.")
    upload.add_argument("--errors-out", default=None, help="Write an error report CSV.")

    # template cmd
    template = sub.add_parser("template", help="Print the CSV template for an upload type.")
    template.add_argument("--type", required=True, choices=UPLOAD_TYPES, dest="upload_type")
    template.add_argument("--output", default=None, help="Write to this path instead of stdout.")

    # db cmd
    db = sub.add_parser("db", help="Database utilities.")
    db_sub = db.add_subparsers(dest="db_cmd", required=True)

    db_init_p = db_sub.add_parser("init", help="Initialize DB schema from SQL file(s).")
    db_init_p.add_argument("--sql", default="sql", help="Path to schema SQL file OR a directory of `.sql` files.")

    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.cmd == "upload":
        settings = get_upload_settings()
        if args.create_missing_categories:
            settings = replace(settings, create_missing_categories=True)

        def _progress(pct: int) -> None:
            logging.getLogger("stock_ingest.progress").debug("%d%%", pct)

        try:
            with connect() as conn:
                result = upload_file(
                    conn,
                    input_path=Path(args.input),
                    upload_type=args.upload_type,
                    settings=settings,
                    dry_run=args.dry_run,
                    progress=_progress,
                )
        except UploadAborted as e:
            print(f"Upload aborted: {e}", file=sys.stderr)
            return 1

        print(result.render_one_line())
        for line in result.render_errors(settings.error_display_limit):
            print(f"  {line}")

        if args.retry_out and result.error_count:
            Path(args.retry_out).write_text(retry_ready_csv(result), encoding="utf-8")
            print(f"Wrote {result.error_count} rows to retry to {args.retry_out}")
        if args.errors_out and result.error_count:
            Path(args.errors_out).write_text(error_report_csv(result), encoding="utf-8")
            print(f"Wrote error report to {args.errors_out}")
        return 0

    if args.cmd == "template":
        _write_or_print(template_csv(args.upload_type), args.output)
        return 0

    if args.cmd == "db" and args.db_cmd == "init":
        db_init(sql_path=Path(args.sql))
        print(f"Initialized schema from {args.sql}")
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
