from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.primitives import (
    non_negative,
    parse_days,
    parse_quantity,
    parse_required_text,
    positive,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import NormalizedRecord, RowOutcome


_REORDER_RULE_COLUMNS: dict[str, tuple[str, ...]] = {
    "item_code": ("itemcode", "item", "code"),
    "supplier_name": ("suppliername", "supplier", "vendor", "vendor_name"),
    "minimum_stock_level": ("min_stock_level", "min_stock", "minimum_stock", "reorder_level"),
    "reorder_quantity": ("reorder_qty", "order_qty", "order_quantity"),
    "safety_stock_level": ("safety_stock", "buffer_stock"),
    "consumption_rate_per_day": ("consumption_rate", "daily_consumption", "consumption_per_day"),
    "lead_time_days": ("lead_time", "leadtime", "lead_days"),
}

_REORDER_RULE_INPUT_ALIASES = alias_table(_REORDER_RULE_COLUMNS)

REORDER_RULE_TEMPLATE_HEADERS: tuple[str, ...] = tuple(_REORDER_RULE_COLUMNS)

REORDER_RULE_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"item_code": "RAW_ADH_117", "supplier_name": "ABC Adhesives Pvt Ltd", "minimum_stock_level": "500",
     "reorder_quantity": "1000", "safety_stock_level": "100", "consumption_rate_per_day": "50",
     "lead_time_days": "7"},
    {"item_code": "PAC_ADH_110", "supplier_name": "ABC Adhesives Pvt Ltd", "minimum_stock_level": "200",
     "reorder_quantity": "400", "safety_stock_level": "", "consumption_rate_per_day": "",
     "lead_time_days": "14"},
]

DEFAULT_SAFETY_STOCK = Decimal("0.000")
DEFAULT_CONSUMPTION_RATE = Decimal("0.000")


reorder_rules_parser = RowParser(
    fields=[
        FieldSpec("item_code", lambda r: r.get("item_code"), lambda v: parse_required_text(v, field="item_code"), True),
        FieldSpec("supplier_name", lambda r: r.get("supplier_name"), lambda v: parse_required_text(v, field="supplier_name"), True),
        FieldSpec(
            "minimum_stock_level",
            lambda r: r.get("minimum_stock_level"),
            lambda v: positive(parse_quantity(v, field="minimum_stock_level"), field="minimum_stock_level"),
            True,
        ),
        FieldSpec(
            "reorder_quantity",
            lambda r: r.get("reorder_quantity"),
            lambda v: positive(parse_quantity(v, field="reorder_quantity"), field="reorder_quantity"),
            True,
        ),
        FieldSpec(
            "safety_stock_level",
            lambda r: r.get("safety_stock_level"),
            lambda v: non_negative(parse_quantity(v, field="safety_stock_level"), field="safety_stock_level"),
            False,
            DEFAULT_SAFETY_STOCK,
        ),
        FieldSpec(
            "consumption_rate_per_day",
            lambda r: r.get("consumption_rate_per_day"),
            lambda v: non_negative(parse_quantity(v, field="consumption_rate_per_day"), field="consumption_rate_per_day"),
            False,
            DEFAULT_CONSUMPTION_RATE,
        ),
        FieldSpec(
            "lead_time_days",
            lambda r: r.get("lead_time_days"),
            lambda v: parse_days(v, field="lead_time_days", minimum=1),
            True,
        ),
    ],
)


def canonicalize_reorder_rule_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {k: raw.get(k) for k in _REORDER_RULE_COLUMNS}


def parse_reorder_rule_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single reorder rule row."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_reorder_rule_row(adapt_row(raw, aliases=_REORDER_RULE_INPUT_ALIASES))
    return reorder_rules_parser.parse(canon, source_row=source_row, raw_payload=original)
