from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from uuid import UUID

import pytest

import stock_ingest.cli.main as cli_main
from stock_ingest.cli.main import main
from stock_ingest.ingest.errors import EmptyFileError
from stock_ingest.ingest.summary import UploadResult
from stock_ingest.parsing.types import ErrorCode, RowOutcome


@contextmanager
def fake_connect() -> Iterator[object]:
    """Identity connection."""
    yield object()


def test_cli_help_prints_and_exits_zero(capsys: pytest.CaptureFixture[str]) -> None:
    """CLI is accessible."""
    # Argparse exits via SystemExit for -h
    with pytest.raises(SystemExit) as e:
        main(["-h"])

    assert e.value.code == 0
    out = capsys.readouterr().out
    assert "usage: stock-ingest" in out
    assert "upload" in out
    assert "template" in out
    assert "db" in out


def test_cli_upload_happy_path_calls_loader_and_prints_summary(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """
    Test the CLI `upload` command works in isolation.
    The loader is patched to test without Postgres.
    """
    grn = tmp_path / "grn.csv"
    grn.write_text("grn_number,date,item_code,qty_received,uom\nG-1,2025-01-01,RAW_001,5,kg\n", encoding="utf-8")
    retry = tmp_path / "retry.csv"

    calls: dict[str, object] = {}

    def fake_upload_file(conn: object, *, input_path: Path, upload_type: str, settings, dry_run: bool, progress):
        calls.update(conn=conn, input_path=input_path, upload_type=upload_type, dry_run=dry_run)
        outcomes = [
            RowOutcome.success(source_row=2, original_data={"grn_number": "G-1", "uom": "kg"}),
            RowOutcome.failure(
                source_row=3,
                original_data={"grn_number": "G-2", "uom": "bags"},
                code=ErrorCode.invalid_enum,
                reason="Invalid uom: 'bags'",
            ),
        ]
        return UploadResult(
            upload_type,
            outcomes,
            dry_run=dry_run,
            run_id=UUID("00000000-0000-0000-0000-000000000001"),
            input_path=str(input_path),
        )

    monkeypatch.setattr(cli_main, "connect", fake_connect)
    monkeypatch.setattr(cli_main, "upload_file", fake_upload_file)

    rc = main(["upload", "--type", "grn", "--input", str(grn), "--retry-out", str(retry)])
    assert rc == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "grn: total=2 succeeded=1 failed=1 run_id=00000000-0000-0000-0000-000000000001"
    assert out[1] == "  Row 3: [invalid_enum] Invalid uom: 'bags'"
    assert calls["upload_type"] == "grn"
    assert calls["dry_run"] is False
    assert Path(calls["input_path"]) == grn
    assert retry.read_text(encoding="utf-8") == "grn_number,uom\nG-2,bags\n"


def test_cli_upload_aborted_exits_one(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Batch-fatal conditions end the command with exit code 1."""

    def fake_upload_file(conn: object, **kwargs: object) -> UploadResult:
        raise EmptyFileError("file has no data rows")

    monkeypatch.setattr(cli_main, "connect", fake_connect)
    monkeypatch.setattr(cli_main, "upload_file", fake_upload_file)

    rc = main(["upload", "--type", "issues", "--input", str(tmp_path / "issues.csv"), "--dry-run"])
    assert rc == 1
    assert "Upload aborted: file has no data rows" in capsys.readouterr().err


def test_cli_template_writes_headers(tmp_path: Path) -> None:
    out = tmp_path / "opening.csv"
    assert main(["template", "--type", "opening_stock", "--output", str(out)]) == 0
    assert out.read_text(encoding="utf-8").splitlines()[0] == "item_code,opening_qty,date,remarks"


def test_cli_rejects_unknown_upload_type() -> None:
    with pytest.raises(SystemExit) as e:
        main(["template", "--type", "purchase_orders"])
    assert e.value.code == 2
