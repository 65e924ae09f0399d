from __future__ import annotations

import re
from typing import Any, Mapping

from stock_ingest.parsing.adapter import adapt_row, alias_table
from stock_ingest.parsing.primitives import (
    non_negative,
    parse_decimal,
    parse_optional_text,
    parse_required_text,
)
from stock_ingest.parsing.schema import FieldSpec, RowParser
from stock_ingest.parsing.types import ErrorCode, NormalizedRecord, ParseError, RowOutcome


_SUPPLIER_COLUMNS: dict[str, tuple[str, ...]] = {
    "supplier_name": ("suppliername", "name", "vendor", "vendor_name", "company"),
    "contact_person": ("contact", "contactperson", "contact_name"),
    "email": ("email_id", "email_address", "mail"),
    "phone": ("phone_number", "mobile", "contact_number", "telephone"),
    "address": ("street", "address_line"),
    "city": (),
    "state": (),
    "pincode": ("pin", "zip", "postal_code"),
    "gstin": ("gst", "gst_number", "gstin_number"),
    "pan": ("pan_number",),
    "payment_terms": ("terms", "paymentterms"),
    "credit_limit": ("creditlimit", "credit"),
    "material_categories": ("categories", "materials", "supplies"),
}

_SUPPLIER_INPUT_ALIASES = alias_table(_SUPPLIER_COLUMNS)

SUPPLIER_TEMPLATE_HEADERS: tuple[str, ...] = tuple(_SUPPLIER_COLUMNS)

SUPPLIER_TEMPLATE_SAMPLE: list[dict[str, str]] = [
    {"supplier_name": "ABC Adhesives Pvt Ltd", "contact_person": "Rajesh Kumar", "email": "rajesh@abcadhesives.com",
     "phone": "+91 98765 43210", "address": "Plot 12, MIDC", "city": "Pune", "state": "Maharashtra",
     "pincode": "411019", "gstin": "27AABCA1234F1Z5", "pan": "AABCA1234F", "payment_terms": "NET_30",
     "credit_limit": "500000", "material_categories": "Adhesive;Chemical"},
]

DEFAULT_PAYMENT_TERMS = "NET_30"

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# optional leading +, then 10-15 digits, spaces, dashes or brackets
_PHONE = re.compile(r"^\+?[\d\s\-()]{10,15}$")
_CATEGORY_SPLIT = re.compile(r"[;,|]")


def parse_email(v: Any) -> str:
    s = parse_required_text(v, field="email")
    if not _EMAIL.match(s):
        raise ParseError(ErrorCode.invalid_value, f"Invalid email format: {s!r}", s)
    return s.lower()


def parse_phone(v: Any) -> str:
    s = parse_required_text(v, field="phone")
    if not _PHONE.match(s):
        raise ParseError(ErrorCode.invalid_value, f"Invalid phone format: {s!r}", s)
    return s


def parse_categories(v: Any) -> tuple[str, ...]:
    """`"Adhesive; Chemical"` -> `("Adhesive", "Chemical")`."""
    s = parse_optional_text(v) or ""
    return tuple(part.strip() for part in _CATEGORY_SPLIT.split(s) if part.strip())


suppliers_parser = RowParser(
    fields=[
        FieldSpec("supplier_name", lambda r: r.get("supplier_name"), lambda v: parse_required_text(v, field="supplier_name"), True),
        FieldSpec("contact_person", lambda r: r.get("contact_person"), lambda v: parse_required_text(v, field="contact_person"), True),
        FieldSpec("email", lambda r: r.get("email"), parse_email, True),
        FieldSpec("phone", lambda r: r.get("phone"), parse_phone, True),
        FieldSpec("address", lambda r: r.get("address"), lambda v: parse_required_text(v, field="address"), True),
        FieldSpec("city", lambda r: r.get("city"), parse_optional_text, False),
        FieldSpec("state", lambda r: r.get("state"), parse_optional_text, False),
        FieldSpec("pincode", lambda r: r.get("pincode"), parse_optional_text, False),
        FieldSpec("gstin", lambda r: r.get("gstin"), lambda v: parse_required_text(v, field="gstin").upper(), False),
        FieldSpec("pan", lambda r: r.get("pan"), lambda v: parse_required_text(v, field="pan").upper(), False),
        FieldSpec(
            "payment_terms",
            lambda r: r.get("payment_terms"),
            lambda v: parse_required_text(v, field="payment_terms").upper().replace(" ", "_"),
            False,
            DEFAULT_PAYMENT_TERMS,
        ),
        FieldSpec(
            "credit_limit",
            lambda r: r.get("credit_limit"),
            lambda v: non_negative(parse_decimal(v, field="credit_limit", precision=14), field="credit_limit"),
            False,
        ),
        FieldSpec("material_categories", lambda r: r.get("material_categories"), parse_categories, False, ()),
    ],
)


def canonicalize_supplier_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Supplier rows need no derivation before parsing."""
    return {k: raw.get(k) for k in _SUPPLIER_COLUMNS}


def parse_supplier_row(raw: Mapping[str, Any], *, source_row: int) -> NormalizedRecord | RowOutcome:
    """Parse a single supplier row."""
    original = {k: v for k, v in raw.items() if k is not None}
    canon = canonicalize_supplier_row(adapt_row(raw, aliases=_SUPPLIER_INPUT_ALIASES))
    return suppliers_parser.parse(canon, source_row=source_row, raw_payload=original)
