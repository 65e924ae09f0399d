from __future__ import annotations

from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.normalize import DEFAULT_USAGE_TYPE, extract_number
from stock_ingest.parsing.primitives import (
    parse_optional_text,
    parse_required_text,
    parse_uom,
    parse_usage_type,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import NormalizedRecord, RowOutcome


# canonical column -> accepted header variants (normalized form)
_ITEM_COLUMNS: dict[str, tuple[str, ...]] = {
    "item_code": ("itemcode", "code"),
    "item_name": ("itemname", "name", "description_name"),
    "category_name": ("category", "categoryname"),
    "qualifier": ("qualifier_code",),
    "gsm": ("gsm_value", "grammage"),
    "size_mm": ("size", "sizemm", "size_in_mm"),
    "uom": ("unit", "unit_of_measure"),
    "usage_type": ("usage", "usagetype", "type"),
    "specifications": ("specification", "specs", "remarks"),
}

_ITEM_INPUT_ALIASES = alias_table(_ITEM_COLUMNS)

ITEM_TEMPLATE_HEADERS: tuple[str, ...] = tuple(_ITEM_COLUMNS)

ITEM_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"item_code": "", "item_name": "BOPP Film 20 micron", "category_name": "Film", "qualifier": "BOPP",
     "gsm": "18 GSM", "size_mm": "1000", "uom": "kg", "usage_type": "film", "specifications": "Transparent"},
    {"item_code": "PAC_CORE_76", "item_name": "Paper core 3 inch", "category_name": "Packaging", "qualifier": "CORE",
     "gsm": "", "size_mm": "76", "uom": "nos", "usage_type": "packaging", "specifications": ""},
]


items_parser = RowParser(
    fields=[
        FieldSpec("item_code", lambda r: r.get("item_code"), lambda v: parse_required_text(v, field="item_code").upper(), False),
        FieldSpec("item_name", lambda r: r.get("item_name"), lambda v: parse_required_text(v, field="item_name"), True),
        FieldSpec("category_name", lambda r: r.get("category_name"), lambda v: parse_required_text(v, field="category_name"), True),
        FieldSpec("qualifier", lambda r: r.get("qualifier"), parse_optional_text, False),
        # GSM is often typed as "80 GSM" or "80gsm"; keep the number only.
        FieldSpec("gsm", lambda r: r.get("gsm"), extract_number, False),
        FieldSpec("size_mm", lambda r: r.get("size_mm"), parse_optional_text, False),
        FieldSpec("uom", lambda r: r.get("uom"), parse_uom, True),
        FieldSpec("usage_type", lambda r: r.get("usage_type"), parse_usage_type, False, DEFAULT_USAGE_TYPE),
        FieldSpec("specifications", lambda r: r.get("specifications"), parse_optional_text, False),
    ],
)


def canonicalize_item_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Item master rows need no derivation before parsing."""
    return {k: raw.get(k) for k in _ITEM_COLUMNS}


def parse_item_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single item master row."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_item_row(adapt_row(raw, aliases=_ITEM_INPUT_ALIASES))
    return items_parser.parse(canon, source_row=source_row, raw_payload=original)
