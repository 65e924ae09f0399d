from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.primitives import (
    parse_date,
    parse_days,
    parse_decimal,
    parse_optional_text,
    parse_percentage,
    parse_quantity,
    parse_required_text,
    positive,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import NormalizedRecord, RowOutcome


_VENDOR_PRICE_COLUMNS: dict[str, tuple[str, ...]] = {
    "supplier_name": ("suppliername", "supplier", "vendor", "vendor_name"),
    "supplier_code": ("suppliercode", "vendor_code"),
    "item_code": ("itemcode", "item", "code"),
    "unit_price": ("unitprice", "price", "rate"),
    "currency": ("curr",),
    "effective_from": ("effectivefrom", "valid_from", "from_date"),
    "effective_to": ("effectiveto", "valid_to", "to_date"),
    "minimum_order_quantity": ("moq", "min_order_qty", "minimum_order_qty"),
    "lead_time_days": ("lead_time", "leadtime", "lead_days"),
    "discount_percentage": ("discount", "discount_pct", "discount_percent"),
    "payment_terms": ("terms", "paymentterms"),
    "validity_days": ("validity", "valid_days"),
}

_VENDOR_PRICE_INPUT_ALIASES = alias_table(_VENDOR_PRICE_COLUMNS)

VENDOR_PRICE_TEMPLATE_HEADERS: tuple[str, ...] = tuple(_VENDOR_PRICE_COLUMNS)

VENDOR_PRICE_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"supplier_name": "ABC Adhesives Pvt Ltd", "supplier_code": "", "item_code": "RAW_ADH_117",
     "unit_price": "25.50", "currency": "INR", "effective_from": "2025-01-01", "effective_to": "2025-12-31",
     "minimum_order_quantity": "100", "lead_time_days": "7", "discount_percentage": "2.5",
     "payment_terms": "NET_30", "validity_days": "30"},
]

DEFAULT_CURRENCY = "INR"
DEFAULT_MOQ = Decimal("1.000")
DEFAULT_LEAD_TIME_DAYS = 7
DEFAULT_DISCOUNT = Decimal("0.00")
DEFAULT_VALIDITY_DAYS = 30


vendor_prices_parser = RowParser(
    fields=[
        # one of supplier_name / supplier_code is required, checked by the upload handler
        FieldSpec("supplier_name", lambda r: r.get("supplier_name"), parse_optional_text, False),
        FieldSpec("supplier_code", lambda r: r.get("supplier_code"), lambda v: parse_required_text(v, field="supplier_code").upper(), False),
        FieldSpec("item_code", lambda r: r.get("item_code"), lambda v: parse_required_text(v, field="item_code"), True),
        FieldSpec(
            "unit_price",
            lambda r: r.get("unit_price"),
            lambda v: positive(parse_decimal(v, field="unit_price", scale=4, precision=14), field="unit_price"),
            True,
        ),
        FieldSpec("currency", lambda r: r.get("currency"), lambda v: parse_required_text(v, field="currency").upper(), False, DEFAULT_CURRENCY),
        FieldSpec("effective_from", lambda r: r.get("effective_from"), lambda v: parse_date(v, field="effective_from"), False),
        FieldSpec("effective_to", lambda r: r.get("effective_to"), lambda v: parse_date(v, field="effective_to"), False),
        FieldSpec(
            "minimum_order_quantity",
            lambda r: r.get("minimum_order_quantity"),
            lambda v: positive(parse_quantity(v, field="minimum_order_quantity"), field="minimum_order_quantity"),
            False,
            DEFAULT_MOQ,
        ),
        FieldSpec("lead_time_days", lambda r: r.get("lead_time_days"), lambda v: parse_days(v, field="lead_time_days"), False, DEFAULT_LEAD_TIME_DAYS),
        FieldSpec(
            "discount_percentage",
            lambda r: r.get("discount_percentage"),
            lambda v: parse_percentage(v, field="discount_percentage"),
            False,
            DEFAULT_DISCOUNT,
        ),
        FieldSpec("payment_terms", lambda r: r.get("payment_terms"), parse_optional_text, False),
        FieldSpec("validity_days", lambda r: r.get("validity_days"), lambda v: parse_days(v, field="validity_days"), False, DEFAULT_VALIDITY_DAYS),
    ],
)


def canonicalize_vendor_price_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Strip a trailing `%` off discounts typed as `"2.5%"`."""
    canon = {k: raw.get(k) for k in _VENDOR_PRICE_COLUMNS}
    discount = canon["discount_percentage"]
    if isinstance(discount, str):
        canon["discount_percentage"] = discount.strip().rstrip("%").strip()
    return canon


def parse_vendor_price_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single vendor price list row."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_vendor_price_row(adapt_row(raw, aliases=_VENDOR_PRICE_INPUT_ALIASES))
    return vendor_prices_parser.parse(canon, source_row=source_row, raw_payload=original)
