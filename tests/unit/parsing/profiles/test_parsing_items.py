from __future__ import annotations

from decimal import Decimal

from stock_ingest.parsing.profiles.items import parse_item_row
from stock_ingest.parsing.types import ErrorCode, NormalizedRecord, RowOutcome


def test_item_happy_path_with_loose_headers() -> None:
    """Spreadsheet-style headers and loose values normalize."""
    raw = {
        "Item Name": "BOPP Film 20 micron",
        "Category": "Film",
        "Qualifier": "BOPP",
        "GSM": "18 GSM",
        "Size": "1000",
        "Unit": "kgs",
        "Usage Type": "film",
    }
    res = parse_item_row(raw, source_row=2)
    assert isinstance(res, NormalizedRecord)
    assert res.values["item_name"] == "BOPP Film 20 micron"
    assert res.values["category_name"] == "Film"
    assert res.values["gsm"] == Decimal("18")
    assert res.values["uom"] == "KG"
    assert res.values["usage_type"] == "RAW_MATERIAL"
    assert res.values["item_code"] is None
    assert res.raw_payload == raw


def test_item_blank_usage_type_defaults_to_raw_material() -> None:
    """A missing usage type is raw material."""
    raw = {"item_name": "Core", "category_name": "Packaging", "uom": "nos"}
    res = parse_item_row(raw, source_row=2)
    assert isinstance(res, NormalizedRecord)
    assert res.values["usage_type"] == "RAW_MATERIAL"
    assert res.values["uom"] == "PCS"


def test_item_missing_fields_reported_together() -> None:
    """Every missing required field is named in one reason."""
    res = parse_item_row({"item_name": "", "uom": "kg"}, source_row=7)
    assert isinstance(res, RowOutcome)
    assert res.code == ErrorCode.missing_field
    assert res.source_row == 7
    assert "item_name" in res.reason and "category_name" in res.reason


def test_item_invalid_uom_is_invalid_enum() -> None:
    """An unrecognized unit fails the row, keeping its original data."""
    raw = {"item_name": "Glue", "category_name": "Adhesive", "uom": "gallon"}
    res = parse_item_row(raw, source_row=3)
    assert isinstance(res, RowOutcome)
    assert res.code == ErrorCode.invalid_enum
    assert res.original_data == raw
