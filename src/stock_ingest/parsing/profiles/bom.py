from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.primitives import (
    non_negative,
    parse_decimal,
    parse_optional_text,
    parse_percentage,
    parse_required_text,
    parse_uom,
    positive,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import NormalizedRecord, RowOutcome


_BOM_COLUMNS: dict[str, tuple[str, ...]] = {
    "fg_item_code": ("fg_code", "fg_item", "finished_good", "finished_good_code", "parent_item_code"),
    "rm_item_code": ("rm_code", "rm_item", "raw_material", "raw_material_code", "component_item_code"),
    "quantity_required": ("qty_required", "quantity", "qty"),
    "unit_of_measure": ("uom", "unit"),
    "gsm_contribution": ("gsm",),
    "percentage_contribution": ("percentage", "pct_contribution", "contribution_percent"),
    "consumption_rate": ("consumption",),
    "wastage_percentage": ("wastage", "wastage_pct", "wastage_percent"),
    "customer_code": ("customer", "customercode"),
    "notes": ("remarks", "comment", "description"),
}

_BOM_INPUT_ALIASES = alias_table(_BOM_COLUMNS)

BOM_TEMPLATE_HEADERS: tuple[str, ...] = tuple(_BOM_COLUMNS)

BOM_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"fg_item_code": "FG_LAM_001", "rm_item_code": "RAW_FIL_1000_18P5", "quantity_required": "0.45",
     "unit_of_measure": "kg", "gsm_contribution": "18.5", "percentage_contribution": "40",
     "consumption_rate": "1", "wastage_percentage": "3", "customer_code": "", "notes": "Base film"},
    {"fg_item_code": "FG_LAM_001", "rm_item_code": "RAW_ADH_117", "quantity_required": "0.05",
     "unit_of_measure": "kg", "gsm_contribution": "3", "percentage_contribution": "5",
     "consumption_rate": "", "wastage_percentage": "", "customer_code": "", "notes": ""},
]

DEFAULT_GSM_CONTRIBUTION = Decimal("0.00")
DEFAULT_PERCENTAGE_CONTRIBUTION = Decimal("0.00")
DEFAULT_CONSUMPTION_RATE = Decimal("1.0000")
DEFAULT_WASTAGE = Decimal("0.00")


def _ratio(v: Any, *, field: str) -> Decimal:
    return parse_decimal(v, field=field, scale=4, precision=14)


bom_parser = RowParser(
    fields=[
        FieldSpec("fg_item_code", lambda r: r.get("fg_item_code"), lambda v: parse_required_text(v, field="fg_item_code"), True),
        FieldSpec("rm_item_code", lambda r: r.get("rm_item_code"), lambda v: parse_required_text(v, field="rm_item_code"), True),
        FieldSpec(
            "quantity_required",
            lambda r: r.get("quantity_required"),
            lambda v: positive(_ratio(v, field="quantity_required"), field="quantity_required"),
            True,
        ),
        FieldSpec("unit_of_measure", lambda r: r.get("unit_of_measure"), lambda v: parse_uom(v, field="unit_of_measure"), True),
        FieldSpec(
            "gsm_contribution",
            lambda r: r.get("gsm_contribution"),
            lambda v: non_negative(parse_decimal(v, field="gsm_contribution", precision=10), field="gsm_contribution"),
            False,
            DEFAULT_GSM_CONTRIBUTION,
        ),
        FieldSpec(
            "percentage_contribution",
            lambda r: r.get("percentage_contribution"),
            lambda v: parse_percentage(v, field="percentage_contribution"),
            False,
            DEFAULT_PERCENTAGE_CONTRIBUTION,
        ),
        FieldSpec(
            "consumption_rate",
            lambda r: r.get("consumption_rate"),
            lambda v: positive(_ratio(v, field="consumption_rate"), field="consumption_rate"),
            False,
            DEFAULT_CONSUMPTION_RATE,
        ),
        FieldSpec(
            "wastage_percentage",
            lambda r: r.get("wastage_percentage"),
            lambda v: parse_percentage(v, field="wastage_percentage"),
            False,
            DEFAULT_WASTAGE,
        ),
        FieldSpec("customer_code", lambda r: r.get("customer_code"), parse_optional_text, False),
        FieldSpec("notes", lambda r: r.get("notes"), parse_optional_text, False),
    ],
)


def canonicalize_bom_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Strip a trailing `%` off the two percentage columns."""
    canon = {k: raw.get(k) for k in _BOM_COLUMNS}
    for k in ("percentage_contribution", "wastage_percentage"):
        if isinstance(canon[k], str):
            canon[k] = canon[k].strip().rstrip("%").strip()
    return canon


def parse_bom_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single bill of materials line."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_bom_row(adapt_row(raw, aliases=_BOM_INPUT_ALIASES))
    return bom_parser.parse(canon, source_row=source_row, raw_payload=original)
