from __future__ import annotations

from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.primitives import (
    non_negative,
    parse_date,
    parse_optional_text,
    parse_quantity,
    parse_required_text,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import NormalizedRecord, RowOutcome


_OPENING_STOCK_COLUMNS: dict[str, tuple[str, ...]] = {
    "item_code": ("itemcode", "item", "code"),
    "opening_qty": ("opening_quantity", "current_qty", "quantity", "qty"),
    "date": ("opening_date", "as_of", "as_on_date"),
    "remarks": ("notes", "comment", "description"),
    # optional stock levels, not part of the template
    "min_stock_level": ("min_level", "minimum"),
    "max_stock_level": ("max_level", "maximum"),
    "reorder_level": ("reorder", "reorder_point"),
}

_OPENING_STOCK_INPUT_ALIASES = alias_table(_OPENING_STOCK_COLUMNS)

OPENING_STOCK_TEMPLATE_HEADERS: tuple[str, ...] = ("item_code", "opening_qty", "date", "remarks")

OPENING_STOCK_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"item_code": "RAW_ADH_117", "opening_qty": "1000", "date": "2025-01-01", "remarks": "Initial stock"},
    {"item_code": "PAC_ADH_110", "opening_qty": "250.5", "date": "01/01/2025", "remarks": ""},
]

DEFAULT_OPENING_REMARKS = "Opening stock upload"


def _level(name: str) -> FieldSpec:
    return FieldSpec(name, lambda r: r.get(name), lambda v: non_negative(parse_quantity(v, field=name), field=name), False)


opening_stock_parser = RowParser(
    fields=[
        FieldSpec("item_code", lambda r: r.get("item_code"), lambda v: parse_required_text(v, field="item_code"), True),
        FieldSpec(
            "opening_qty",
            lambda r: r.get("opening_qty"),
            lambda v: non_negative(parse_quantity(v, field="opening_qty"), field="opening_qty"),
            True,
        ),
        # blank date means "as of the upload day", filled in by the handler
        FieldSpec("date", lambda r: r.get("date"), lambda v: parse_date(v, field="date"), False),
        FieldSpec("remarks", lambda r: r.get("remarks"), parse_optional_text, False, DEFAULT_OPENING_REMARKS),
        _level("min_stock_level"),
        _level("max_stock_level"),
        _level("reorder_level"),
    ],
)


def canonicalize_opening_stock_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Opening stock rows need no derivation before parsing."""
    return {k: raw.get(k) for k in _OPENING_STOCK_COLUMNS}


def parse_opening_stock_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single opening stock row."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_opening_stock_row(adapt_row(raw, aliases=_OPENING_STOCK_INPUT_ALIASES))
    return opening_stock_parser.parse(canon, source_row=source_row, raw_payload=original)
