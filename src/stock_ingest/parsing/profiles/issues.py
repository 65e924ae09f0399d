from __future__ import annotations

from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.primitives import (
    parse_date,
    parse_optional_text,
    parse_quantity,
    parse_required_text,
    positive,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import NormalizedRecord, RowOutcome


_ISSUE_COLUMNS: dict[str, tuple[str, ...]] = {
    "date": ("issue_date", "issuedate"),
    "item_code": ("itemcode", "item", "code"),
    "qty_issued": ("qtyissued", "quantity", "qty", "issued_qty"),
    "purpose": ("reason", "usage", "issued_to"),
    "remarks": ("notes", "comment", "description"),
}

_ISSUE_INPUT_ALIASES = alias_table(_ISSUE_COLUMNS)

ISSUE_TEMPLATE_HEADERS: tuple[str, ...] = tuple(_ISSUE_COLUMNS)

ISSUE_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"date": "2025-01-15", "item_code": "RAW_ADH_117", "qty_issued": "500", "purpose": "Production",
     "remarks": "Raw material for production"},
    {"date": "2025-01-15", "item_code": "PAC_ADH_110", "qty_issued": "100", "purpose": "Packaging",
     "remarks": ""},
]

DEFAULT_ISSUE_PURPOSE = "General Issue"
DEFAULT_ISSUE_REMARKS = "Bulk issue upload"


issues_parser = RowParser(
    fields=[
        FieldSpec("date", lambda r: r.get("date"), lambda v: parse_date(v, field="date"), True),
        FieldSpec("item_code", lambda r: r.get("item_code"), lambda v: parse_required_text(v, field="item_code"), True),
        FieldSpec(
            "qty_issued",
            lambda r: r.get("qty_issued"),
            lambda v: positive(parse_quantity(v, field="qty_issued"), field="qty_issued"),
            True,
        ),
        FieldSpec("purpose", lambda r: r.get("purpose"), parse_optional_text, False, DEFAULT_ISSUE_PURPOSE),
        FieldSpec("remarks", lambda r: r.get("remarks"), parse_optional_text, False, DEFAULT_ISSUE_REMARKS),
    ],
)


def canonicalize_issue_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Issue rows need no derivation before parsing."""
    return {k: raw.get(k) for k in _ISSUE_COLUMNS}


def parse_issue_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single stock issue row."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_issue_row(adapt_row(raw, aliases=_ISSUE_INPUT_ALIASES))
    return issues_parser.parse(canon, source_row=source_row, raw_payload=original)
