from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Mapping

from psycopg import Connection
from psycopg.rows import dict_row


def fetch_categories(conn: Connection) -> list[tuple[str, Any]]:
    """`(category_name, id)` for every category."""
    rows = conn.execute("SELECT category_name, id FROM categories ORDER BY category_name").fetchall()
    return [(r[0], r[1]) for r in rows]


def fetch_items(conn: Connection) -> list[dict[str, Any]]:
    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(
            """
            SELECT item_code, item_name, uom, category_id, current_price, usage_type
            FROM item_master
            ORDER BY item_code
            """
        )
        return cur.fetchall()


def fetch_suppliers(conn: Connection) -> list[dict[str, Any]]:
    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(
            """
            SELECT id, supplier_code, supplier_name, email, is_active
            FROM suppliers
            ORDER BY supplier_name
            """
        )
        return cur.fetchall()


def fetch_stock_on_hand(conn: Connection) -> dict[str, Decimal]:
    rows = conn.execute("SELECT item_code, current_qty FROM stock").fetchall()
    return {r[0]: r[1] for r in rows}


# natural key columns already in the store, per upload type.
# column aliases match the field names the profile parsers emit.
_EXISTING_KEY_QUERIES: dict[str, str] = {
    "items": "SELECT item_code FROM item_master",
    "opening_stock": "SELECT item_code FROM stock",
    "grn": "SELECT grn_number FROM grn_log",
    "issues": "SELECT item_code, date, qty_issued FROM issue_log",
    "suppliers": "SELECT supplier_name, email FROM suppliers",
    "item_pricing": "SELECT item_code, effective_date FROM item_price_changes",
    "bom": "SELECT fg_item_code, rm_item_code FROM bill_of_materials",
}


def fetch_existing_key_rows(conn: Connection, upload_type: str) -> Iterable[Mapping[str, Any]]:
    """
    Natural key values already stored for `upload_type`.

    Vendor price lists and reorder rules upsert, so nothing is returned for them.
    """
    query = _EXISTING_KEY_QUERIES.get(upload_type)
    if query is None:
        return []
    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(query)
        return cur.fetchall()
