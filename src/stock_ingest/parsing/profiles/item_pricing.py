from __future__ import annotations

from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.primitives import (
    parse_date,
    parse_decimal,
    parse_optional_text,
    parse_required_text,
    positive,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import NormalizedRecord, RowOutcome


_ITEM_PRICING_COLUMNS: dict[str, tuple[str, ...]] = {
    "item_code": ("itemcode", "item", "code"),
    "proposed_price": ("price", "new_price", "proposedprice", "unit_price"),
    "cost_category": ("category", "costcategory"),
    "supplier": ("vendor", "supplier_name"),
    "effective_date": ("date", "effectivedate", "effective_from"),
    "change_reason": ("reason", "notes", "comments", "remarks"),
}

_ITEM_PRICING_INPUT_ALIASES = alias_table(_ITEM_PRICING_COLUMNS)

ITEM_PRICING_TEMPLATE_HEADERS: tuple[str, ...] = tuple(_ITEM_PRICING_COLUMNS)

ITEM_PRICING_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"item_code": "RAW_ADH_117", "proposed_price": "26.75", "cost_category": "RAW_MATERIAL",
     "supplier": "ABC Adhesives Pvt Ltd", "effective_date": "2025-02-01", "change_reason": "Quarterly revision"},
]

DEFAULT_CHANGE_REASON = "Bulk CSV upload"


item_pricing_parser = RowParser(
    fields=[
        FieldSpec("item_code", lambda r: r.get("item_code"), lambda v: parse_required_text(v, field="item_code"), True),
        FieldSpec(
            "proposed_price",
            lambda r: r.get("proposed_price"),
            lambda v: positive(parse_decimal(v, field="proposed_price", scale=4, precision=14), field="proposed_price"),
            True,
        ),
        FieldSpec("cost_category", lambda r: r.get("cost_category"), parse_optional_text, False),
        FieldSpec("supplier", lambda r: r.get("supplier"), parse_optional_text, False),
        FieldSpec("effective_date", lambda r: r.get("effective_date"), lambda v: parse_date(v, field="effective_date"), False),
        FieldSpec("change_reason", lambda r: r.get("change_reason"), parse_optional_text, False, DEFAULT_CHANGE_REASON),
    ],
)


def canonicalize_item_pricing_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Prices are sometimes pasted with a currency marker, e.g. `"Rs. 26.75"` or `"₹26.75"`."""
    canon = {k: raw.get(k) for k in _ITEM_PRICING_COLUMNS}
    price = canon["proposed_price"]
    if isinstance(price, str):
        s = price.strip()
        for marker in ("₹", "RS.", "RS", "INR"):
            if s.upper().startswith(marker):
                s = s[len(marker):].strip()
                break
        canon["proposed_price"] = s
    return canon


def parse_item_pricing_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single item price change row."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_item_pricing_row(adapt_row(raw, aliases=_ITEM_PRICING_INPUT_ALIASES))
    return item_pricing_parser.parse(canon, source_row=source_row, raw_payload=original)
