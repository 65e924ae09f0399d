"""
One function per upload type's write. Each runs inside the caller's transaction.
"""
from __future__ import annotations

from typing import Any, Mapping

from psycopg import Connection

from .errors import StoreWriteError


def insert_category(conn: Connection, *, name: str) -> Any:
    row = conn.execute(
        "INSERT INTO categories (category_name) VALUES (%s) RETURNING id",
        (name,),
    ).fetchone()
    assert row is not None
    return row[0]


def insert_item(conn: Connection, values: Mapping[str, Any]) -> None:
    conn.execute(
        """
        INSERT INTO item_master
            (item_code, item_name, category_id, qualifier, gsm, size_mm, uom, usage_type, specifications)
        VALUES
            (%(item_code)s, %(item_name)s, %(category_id)s, %(qualifier)s, %(gsm)s, %(size_mm)s,
             %(uom)s, %(usage_type)s, %(specifications)s)
        """,
        dict(values),
    )


def insert_opening_stock(conn: Connection, values: Mapping[str, Any]) -> None:
    """Stock row plus an audit GRN marking where the quantity came from."""
    conn.execute(
        """
        INSERT INTO stock
            (item_code, item_name, current_qty, min_stock_level, max_stock_level, reorder_level)
        VALUES
            (%(item_code)s, %(item_name)s, %(opening_qty)s,
             %(min_stock_level)s, %(max_stock_level)s, %(reorder_level)s)
        """,
        dict(values),
    )
    conn.execute(
        """
        INSERT INTO grn_log
            (grn_number, date, item_code, qty_received, uom, vendor, amount_inr, remarks, transaction_type)
        VALUES
            (%(grn_number)s, %(date)s, %(item_code)s, %(opening_qty)s, %(uom)s, %(vendor)s,
             0, %(remarks)s, %(transaction_type)s)
        """,
        dict(values),
    )


def insert_grn(conn: Connection, values: Mapping[str, Any]) -> None:
    conn.execute(
        """
        INSERT INTO grn_log
            (grn_number, date, item_code, qty_received, uom, vendor, invoice_number, amount_inr, remarks)
        VALUES
            (%(grn_number)s, %(date)s, %(item_code)s, %(qty_received)s, %(uom)s, %(vendor)s,
             %(invoice_number)s, %(amount_inr)s, %(remarks)s)
        """,
        dict(values),
    )
    conn.execute(
        """
        INSERT INTO stock (item_code, item_name, current_qty, last_updated)
        VALUES (%(item_code)s, %(item_name)s, %(qty_received)s, now())
        ON CONFLICT (item_code) DO UPDATE
            SET current_qty = stock.current_qty + EXCLUDED.current_qty,
                last_updated = now()
        """,
        dict(values),
    )


def insert_issue(conn: Connection, values: Mapping[str, Any]) -> None:
    conn.execute(
        """
        INSERT INTO issue_log (date, item_code, qty_issued, purpose, remarks)
        VALUES (%(date)s, %(item_code)s, %(qty_issued)s, %(purpose)s, %(remarks)s)
        """,
        dict(values),
    )
    cur = conn.execute(
        """
        UPDATE stock
        SET current_qty = current_qty - %(qty_issued)s, last_updated = now()
        WHERE item_code = %(item_code)s
        """,
        dict(values),
    )
    if cur.rowcount != 1:
        raise StoreWriteError(f"no stock row for item {values['item_code']!r}")


def insert_supplier(conn: Connection, values: Mapping[str, Any]) -> Any:
    params = dict(values)
    params["material_categories"] = list(params.get("material_categories") or ())
    row = conn.execute(
        """
        INSERT INTO suppliers
            (supplier_code, supplier_name, contact_person, email, phone, address, city, state,
             pincode, gstin, pan, payment_terms, credit_limit, material_categories)
        VALUES
            (%(supplier_code)s, %(supplier_name)s, %(contact_person)s, %(email)s, %(phone)s,
             %(address)s, %(city)s, %(state)s, %(pincode)s, %(gstin)s, %(pan)s,
             %(payment_terms)s, %(credit_limit)s, %(material_categories)s)
        RETURNING id
        """,
        params,
    ).fetchone()
    assert row is not None
    return row[0]


def upsert_vendor_price(conn: Connection, values: Mapping[str, Any]) -> None:
    conn.execute(
        """
        INSERT INTO vendor_price_lists
            (supplier_id, item_code, unit_price, currency, effective_from, effective_to,
             minimum_order_quantity, lead_time_days, discount_percentage, payment_terms, validity_days)
        VALUES
            (%(supplier_id)s, %(item_code)s, %(unit_price)s, %(currency)s, %(effective_from)s,
             %(effective_to)s, %(minimum_order_quantity)s, %(lead_time_days)s,
             %(discount_percentage)s, %(payment_terms)s, %(validity_days)s)
        ON CONFLICT (supplier_id, item_code, effective_from) DO UPDATE SET
            unit_price = EXCLUDED.unit_price,
            currency = EXCLUDED.currency,
            effective_to = EXCLUDED.effective_to,
            minimum_order_quantity = EXCLUDED.minimum_order_quantity,
            lead_time_days = EXCLUDED.lead_time_days,
            discount_percentage = EXCLUDED.discount_percentage,
            payment_terms = EXCLUDED.payment_terms,
            validity_days = EXCLUDED.validity_days,
            updated_at = now()
        """,
        dict(values),
    )


def insert_price_change(conn: Connection, values: Mapping[str, Any]) -> None:
    """An approved change becomes the item's current price straight away."""
    conn.execute(
        """
        INSERT INTO item_price_changes
            (item_code, old_price, proposed_price, change_percentage, cost_category, supplier,
             effective_date, change_reason, approval_status)
        VALUES
            (%(item_code)s, %(old_price)s, %(proposed_price)s, %(change_percentage)s,
             %(cost_category)s, %(supplier)s, %(effective_date)s, %(change_reason)s,
             %(approval_status)s)
        """,
        dict(values),
    )
    if values["approval_status"] == "APPROVED":
        conn.execute(
            "UPDATE item_master SET current_price = %(proposed_price)s WHERE item_code = %(item_code)s",
            dict(values),
        )


def upsert_reorder_rule(conn: Connection, values: Mapping[str, Any]) -> None:
    conn.execute(
        """
        INSERT INTO reorder_rules
            (item_code, supplier_id, minimum_stock_level, reorder_quantity, safety_stock_level,
             consumption_rate_per_day, lead_time_days)
        VALUES
            (%(item_code)s, %(supplier_id)s, %(minimum_stock_level)s, %(reorder_quantity)s,
             %(safety_stock_level)s, %(consumption_rate_per_day)s, %(lead_time_days)s)
        ON CONFLICT (item_code, supplier_id) DO UPDATE SET
            minimum_stock_level = EXCLUDED.minimum_stock_level,
            reorder_quantity = EXCLUDED.reorder_quantity,
            safety_stock_level = EXCLUDED.safety_stock_level,
            consumption_rate_per_day = EXCLUDED.consumption_rate_per_day,
            lead_time_days = EXCLUDED.lead_time_days,
            is_active = true,
            updated_at = now()
        """,
        dict(values),
    )


def insert_bom_line(conn: Connection, values: Mapping[str, Any]) -> None:
    conn.execute(
        """
        INSERT INTO bill_of_materials
            (fg_item_code, rm_item_code, quantity_required, unit_of_measure, gsm_contribution,
             percentage_contribution, consumption_rate, wastage_percentage, customer_code, notes,
             bom_version, effective_date)
        VALUES
            (%(fg_item_code)s, %(rm_item_code)s, %(quantity_required)s, %(unit_of_measure)s,
             %(gsm_contribution)s, %(percentage_contribution)s, %(consumption_rate)s,
             %(wastage_percentage)s, %(customer_code)s, %(notes)s, %(bom_version)s,
             %(effective_date)s)
        """,
        dict(values),
    )
