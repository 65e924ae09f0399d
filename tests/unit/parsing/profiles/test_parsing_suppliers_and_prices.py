from __future__ import annotations

from decimal import Decimal

import pytest

from stock_ingest.parsing.profiles.item_pricing import parse_item_pricing_row
from stock_ingest.parsing.profiles.suppliers import parse_supplier_row
from stock_ingest.parsing.profiles.vendor_prices import parse_vendor_price_row
from stock_ingest.parsing.types import ErrorCode, NormalizedRecord, RowOutcome

SUPPLIER = {
    "supplier_name": "ABC Adhesives",
    "contact_person": "Rajesh",
    "email": "Rajesh@ABC.com",
    "phone": "+91 98765 43210",
    "address": "Plot 12",
}


def test_supplier_happy_path() -> None:
    """Email is lower-cased; payment terms and categories default."""
    res = parse_supplier_row(SUPPLIER, source_row=2)
    assert isinstance(res, NormalizedRecord)
    assert res.values["email"] == "rajesh@abc.com"
    assert res.values["payment_terms"] == "NET_30"
    assert res.values["material_categories"] == ()


def test_supplier_categories_split() -> None:
    """Semicolon separated categories become a tuple."""
    res = parse_supplier_row({**SUPPLIER, "material_categories": "Adhesive; Chemical"}, source_row=2)
    assert isinstance(res, NormalizedRecord)
    assert res.values["material_categories"] == ("Adhesive", "Chemical")


def test_supplier_bad_email_and_phone() -> None:
    """Malformed contact details are invalid values."""
    bad_email = parse_supplier_row({**SUPPLIER, "email": "rajesh.at.abc"}, source_row=2)
    assert isinstance(bad_email, RowOutcome)
    assert bad_email.code == ErrorCode.invalid_value
    assert "email" in bad_email.reason

    bad_phone = parse_supplier_row({**SUPPLIER, "phone": "12345"}, source_row=3)
    assert isinstance(bad_phone, RowOutcome)
    assert "phone" in bad_phone.reason


def test_supplier_negative_credit_limit() -> None:
    """Credit limits cannot be negative."""
    res = parse_supplier_row({**SUPPLIER, "credit_limit": "-1"}, source_row=2)
    assert isinstance(res, RowOutcome)
    assert res.code == ErrorCode.invalid_value


def test_vendor_price_defaults() -> None:
    """Currency, MOQ, lead time, discount and validity default."""
    res = parse_vendor_price_row({"supplier_name": "ABC", "item_code": "A", "unit_price": "25.5"}, source_row=2)
    assert isinstance(res, NormalizedRecord)
    v = res.values
    assert v["currency"] == "INR"
    assert v["minimum_order_quantity"] == Decimal("1")
    assert v["lead_time_days"] == 7
    assert v["discount_percentage"] == Decimal("0")
    assert v["validity_days"] == 30
    assert v["effective_from"] is None


def test_vendor_price_discount_percent_sign_and_range() -> None:
    """`2.5%` parses; more than 100 percent does not."""
    ok = parse_vendor_price_row(
        {"supplier_name": "ABC", "item_code": "A", "unit_price": "10", "discount": "2.5%"}, source_row=2
    )
    assert isinstance(ok, NormalizedRecord)
    assert ok.values["discount_percentage"] == Decimal("2.50")

    bad = parse_vendor_price_row(
        {"supplier_name": "ABC", "item_code": "A", "unit_price": "10", "discount": "150"}, source_row=3
    )
    assert isinstance(bad, RowOutcome)
    assert bad.code == ErrorCode.invalid_value


def test_item_pricing_strips_currency_marker() -> None:
    """`Rs. 26.75` parses as a price; change reason defaults."""
    res = parse_item_pricing_row({"item_code": "A", "price": "Rs. 26.75"}, source_row=2)
    assert isinstance(res, NormalizedRecord)
    assert res.values["proposed_price"] == Decimal("26.7500")
    assert res.values["change_reason"] == "Bulk CSV upload"


@pytest.mark.parametrize("price", ["rs. 26.75", "RS 26.75", "inr 26.75", "₹26.75"])
def test_item_pricing_currency_marker_any_case(price: str) -> None:
    res = parse_item_pricing_row({"item_code": "A", "price": price}, source_row=2)
    assert isinstance(res, NormalizedRecord), price
    assert res.values["proposed_price"] == Decimal("26.7500")
