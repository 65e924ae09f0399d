from __future__ import annotations

from datetime import date
from decimal import Decimal

from stock_ingest.config import UploadSettings
from stock_ingest.ingest.pipeline import run_upload
from stock_ingest.parsing.types import ErrorCode

HEADER = "fg_item_code,rm_item_code,quantity_required,unit_of_measure,percentage_contribution,customer_code\n"
TODAY = date(2025, 3, 1)


def _seed(store) -> None:
    store.add_item("FG_LAM_001", usage_type="FINISHED_GOOD")
    store.add_item("RAW_FIL_001")
    store.add_item("PAC_BOX_001", usage_type="PACKAGING")
    store.add_item("WIP_LAM_001", usage_type="WIP")


def test_bom_lines_written_with_version_and_date(store, settings: UploadSettings) -> None:
    """Optional factors default; every line is version 1, effective today."""
    _seed(store)
    body = (
        "fg_lam_001,raw_fil_001,0.45,kg,40%,\n"
        "FG_LAM_001,PAC_BOX_001,1,nos,,CUST01\n"
    )
    result = run_upload(store, upload_type="bom", text=HEADER + body, settings=settings, today=TODAY)

    assert result.error_count == 0
    film, box = store.bom_lines
    assert (film["fg_item_code"], film["rm_item_code"]) == ("FG_LAM_001", "RAW_FIL_001")
    assert film["quantity_required"] == Decimal("0.4500")
    assert film["percentage_contribution"] == Decimal("40.00")
    assert film["consumption_rate"] == Decimal("1")
    assert film["wastage_percentage"] == Decimal("0")
    assert (film["bom_version"], film["effective_date"]) == (1, TODAY)
    assert box["unit_of_measure"] == "PCS"
    assert box["customer_code"] == "CUST01"


def test_usage_types_checked(store, settings: UploadSettings) -> None:
    """The parent must be a finished good; WIP or finished goods cannot be components."""
    _seed(store)
    body = (
        "RAW_FIL_001,PAC_BOX_001,1,kg,,\n"
        "FG_LAM_001,WIP_LAM_001,1,kg,,\n"
    )
    result = run_upload(store, upload_type="bom", text=HEADER + body, settings=settings, today=TODAY)

    not_fg, not_component = result.errors
    assert not_fg.code == ErrorCode.invalid_value
    assert "is not a finished good" in not_fg.reason
    assert not_component.code == ErrorCode.invalid_value
    assert "cannot be a BOM component" in not_component.reason
    assert store.bom_lines == []


def test_duplicate_lines_rejected(store, settings: UploadSettings) -> None:
    """A pair already stored, or repeated in the file, is a duplicate."""
    _seed(store)
    store.insert_bom_line({"fg_item_code": "FG_LAM_001", "rm_item_code": "RAW_FIL_001"})
    body = (
        "FG_LAM_001,RAW_FIL_001,0.5,kg,,\n"
        "FG_LAM_001,PAC_BOX_001,1,pcs,,\n"
        "FG_LAM_001,pac_box_001,2,pcs,,\n"
    )
    result = run_upload(store, upload_type="bom", text=HEADER + body, settings=settings, today=TODAY)

    assert [o.ok for o in result.outcomes] == [False, True, False]
    assert {o.code for o in result.errors} == {ErrorCode.duplicate_key}
    assert "already appears in row 3" in result.errors[1].reason
    assert len(store.bom_lines) == 2


def test_unknown_component(store, settings: UploadSettings) -> None:
    _seed(store)
    result = run_upload(store, upload_type="bom", text=HEADER + "FG_LAM_001,RAW_FIL_002,1,kg,,\n", settings=settings, today=TODAY)

    [failed] = result.errors
    assert failed.code == ErrorCode.unresolved_reference
    assert "RAW_FIL_001" in failed.suggestions
