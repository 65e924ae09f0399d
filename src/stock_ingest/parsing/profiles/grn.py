from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.primitives import (
    non_negative,
    parse_date,
    parse_decimal,
    parse_optional_text,
    parse_quantity,
    parse_required_text,
    parse_uom,
    positive,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import NormalizedRecord, RowOutcome


_GRN_COLUMNS: dict[str, tuple[str, ...]] = {
    "grn_number": ("grnnumber", "grn", "grn_no", "receipt_number"),
    "date": ("received_date", "receiveddate", "receipt_date", "grn_date"),
    "item_code": ("itemcode", "item", "code"),
    "qty_received": ("qtyreceived", "quantity", "qty", "received_qty"),
    "uom": ("unit", "unit_of_measure"),
    "vendor": ("supplier_name", "suppliername", "supplier", "vendor_name"),
    "invoice_number": ("invoicenumber", "invoice", "invoice_no"),
    "amount_inr": ("amount", "total_amount", "value"),
    "remarks": ("notes", "comment", "description"),
}

_GRN_INPUT_ALIASES = alias_table(_GRN_COLUMNS)

GRN_TEMPLATE_HEADERS: tuple[str, ...] = tuple(_GRN_COLUMNS)

GRN_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"grn_number": "GRN-2025-001", "date": "2025-01-15", "item_code": "RAW_ADH_117", "qty_received": "1000",
     "uom": "KG", "vendor": "Supplier A", "invoice_number": "INV-2025-001", "amount_inr": "25500.00",
     "remarks": "Raw material receipt"},
    {"grn_number": "GRN-2025-002", "date": "15/01/2025", "item_code": "PAC_ADH_110", "qty_received": "500",
     "uom": "kgs", "vendor": "Supplier B", "invoice_number": "INV-2025-002", "amount_inr": "6000.00",
     "remarks": ""},
]

DEFAULT_GRN_REMARKS = "Bulk GRN upload"


grn_parser = RowParser(
    fields=[
        FieldSpec("grn_number", lambda r: r.get("grn_number"), lambda v: parse_required_text(v, field="grn_number"), True),
        FieldSpec("date", lambda r: r.get("date"), lambda v: parse_date(v, field="date"), True),
        FieldSpec("item_code", lambda r: r.get("item_code"), lambda v: parse_required_text(v, field="item_code"), True),
        FieldSpec(
            "qty_received",
            lambda r: r.get("qty_received"),
            lambda v: positive(parse_quantity(v, field="qty_received"), field="qty_received"),
            True,
        ),
        FieldSpec("uom", lambda r: r.get("uom"), parse_uom, True),
        FieldSpec("vendor", lambda r: r.get("vendor"), lambda v: parse_required_text(v, field="vendor"), True),
        FieldSpec("invoice_number", lambda r: r.get("invoice_number"), parse_optional_text, False),
        FieldSpec(
            "amount_inr",
            lambda r: r.get("amount_inr"),
            lambda v: non_negative(parse_decimal(v, field="amount_inr"), field="amount_inr"),
            False,
            Decimal("0.00"),
        ),
        FieldSpec("remarks", lambda r: r.get("remarks"), parse_optional_text, False, DEFAULT_GRN_REMARKS),
    ],
)


def canonicalize_grn_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """GRN numbers are compared case-insensitively, so store them upper-cased."""
    canon = {k: raw.get(k) for k in _GRN_COLUMNS}
    if isinstance(canon["grn_number"], str):
        canon["grn_number"] = canon["grn_number"].strip().upper()
    return canon


def parse_grn_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single goods receipt row."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_grn_row(adapt_row(raw, aliases=_GRN_INPUT_ALIASES))
    return grn_parser.parse(canon, source_row=source_row, raw_payload=original)
