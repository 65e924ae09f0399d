from __future__ import annotations

import itertools
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Mapping

import pytest

from stock_ingest.config import UploadSettings
from stock_ingest.db.errors import DuplicateKeyError, StoreReadError, StoreWriteError
from stock_ingest.db.store import ItemRef, SupplierRef
from stock_ingest.resolve.lookup import lookup_key


def _find_repo_root(start: Path) -> Path:
    marker = "pyproject.toml"
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / marker).exists():
            return p
    raise RuntimeError(f"Could not find repo root from: {start}")


@pytest.fixture(scope="session")
def repo_root() -> Path:
    """The absolute path to the repo root (finds by walking up to `pyproject.toml`)."""
    return _find_repo_root(Path(__file__))


class InMemoryStore:
    """
    `InventoryStore` held in dicts, with the same unique constraints as `sql/000_init.sql`.

    - `fail_reads`: every read raises `StoreReadError`.
    - `fail_writes_from`: the Nth write call (1-based) and every later one raise
      `StoreWriteError`, like a connection dropped mid-batch.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.categories: dict[int, str] = {}
        self.items: dict[str, dict[str, Any]] = {}
        self.stock: dict[str, dict[str, Any]] = {}
        self.grns: list[dict[str, Any]] = []
        self.issues: list[dict[str, Any]] = []
        self.suppliers: list[dict[str, Any]] = []
        self.vendor_prices: dict[tuple[Any, str, Any], dict[str, Any]] = {}
        self.price_changes: list[dict[str, Any]] = []
        self.reorder_rules: dict[tuple[str, Any], dict[str, Any]] = {}
        self.bom_lines: list[dict[str, Any]] = []
        self.write_calls = 0
        self.fail_reads = False
        self.fail_writes_from: int | None = None

    ## -- seeding helpers

    def add_category(self, name: str) -> int:
        ident = next(self._ids)
        self.categories[ident] = name
        return ident

    def add_item(
        self,
        code: str,
        name: str | None = None,
        *,
        uom: str = "KG",
        category_id: Any = None,
        current_price: Decimal | None = None,
        usage_type: str = "RAW_MATERIAL",
    ) -> None:
        self.items[code] = {
            "item_code": code,
            "item_name": name or code,
            "uom": uom,
            "category_id": category_id,
            "current_price": current_price,
            "usage_type": usage_type,
        }

    def add_stock(self, code: str, qty: str | Decimal) -> None:
        self.stock[code] = {"item_code": code, "current_qty": Decimal(qty)}

    def add_supplier(self, name: str, code: str, email: str | None = None, *, is_active: bool = True) -> int:
        ident = next(self._ids)
        self.suppliers.append(
            {"id": ident, "supplier_code": code, "supplier_name": name, "email": email, "is_active": is_active}
        )
        return ident

    ## -- reads

    def _read(self) -> None:
        if self.fail_reads:
            raise StoreReadError("connection refused")

    def list_categories(self) -> list[tuple[str, Any]]:
        self._read()
        return [(name, ident) for ident, name in self.categories.items()]

    def list_items(self) -> list[ItemRef]:
        self._read()
        return [ItemRef(**row) for row in self.items.values()]

    def list_suppliers(self) -> list[SupplierRef]:
        self._read()
        return [
            SupplierRef(
                id=s["id"],
                supplier_code=s["supplier_code"],
                supplier_name=s["supplier_name"],
                email=s["email"],
                is_active=s.get("is_active", True),
            )
            for s in self.suppliers
        ]

    def stock_on_hand(self) -> dict[str, Decimal]:
        self._read()
        return {code: row["current_qty"] for code, row in self.stock.items()}

    def existing_key_rows(self, upload_type: str) -> Iterable[Mapping[str, Any]]:
        self._read()
        if upload_type == "items":
            return [{"item_code": c} for c in self.items]
        if upload_type == "opening_stock":
            return [{"item_code": c} for c in self.stock]
        if upload_type == "grn":
            return [{"grn_number": g["grn_number"]} for g in self.grns]
        if upload_type == "issues":
            return [{k: i[k] for k in ("item_code", "date", "qty_issued")} for i in self.issues]
        if upload_type == "suppliers":
            return [{"supplier_name": s["supplier_name"], "email": s["email"]} for s in self.suppliers]
        if upload_type == "item_pricing":
            return [{"item_code": p["item_code"], "effective_date": p["effective_date"]} for p in self.price_changes]
        if upload_type == "bom":
            return [{"fg_item_code": b["fg_item_code"], "rm_item_code": b["rm_item_code"]} for b in self.bom_lines]
        return []

    ## -- writes

    def _write(self) -> None:
        self.write_calls += 1
        if self.fail_writes_from is not None and self.write_calls >= self.fail_writes_from:
            raise StoreWriteError("server closed the connection unexpectedly")

    def insert_item(self, values: Mapping[str, Any]) -> None:
        self._write()
        if values["item_code"] in self.items:
            raise DuplicateKeyError("duplicate key value violates unique constraint \"item_master_item_code_key\"")
        self._add_written_item(values, values["category_id"])

    def insert_item_with_category(self, values: Mapping[str, Any], *, category_name: str) -> Any:
        self._write()
        if any(lookup_key(n) == lookup_key(category_name) for n in self.categories.values()):
            raise DuplicateKeyError("duplicate key value violates unique constraint \"categories_name_key\"")
        if values["item_code"] in self.items:
            raise DuplicateKeyError("duplicate key value violates unique constraint \"item_master_item_code_key\"")
        category_id = self.add_category(category_name)
        self._add_written_item(values, category_id)
        return category_id

    def _add_written_item(self, values: Mapping[str, Any], category_id: Any) -> None:
        self.add_item(
            values["item_code"],
            values["item_name"],
            uom=values["uom"],
            category_id=category_id,
            usage_type=values.get("usage_type") or "RAW_MATERIAL",
        )

    def insert_opening_stock(self, values: Mapping[str, Any]) -> None:
        self._write()
        if values["item_code"] in self.stock:
            raise DuplicateKeyError("duplicate key value violates unique constraint \"stock_pkey\"")
        self.stock[values["item_code"]] = {"item_code": values["item_code"], "current_qty": values["opening_qty"]}
        self.grns.append(
            {
                "grn_number": values["grn_number"],
                "date": values["date"],
                "item_code": values["item_code"],
                "qty_received": values["opening_qty"],
                "vendor": values["vendor"],
                "transaction_type": values["transaction_type"],
            }
        )

    def insert_grn(self, values: Mapping[str, Any]) -> None:
        self._write()
        if any(g["grn_number"] == values["grn_number"] for g in self.grns):
            raise DuplicateKeyError("duplicate key value violates unique constraint \"grn_log_grn_number_key\"")
        self.grns.append(dict(values))
        row = self.stock.setdefault(values["item_code"], {"item_code": values["item_code"], "current_qty": Decimal("0")})
        row["current_qty"] += values["qty_received"]

    def insert_issue(self, values: Mapping[str, Any]) -> None:
        self._write()
        row = self.stock.get(values["item_code"])
        if row is None or row["current_qty"] < values["qty_issued"]:
            raise StoreWriteError("new row for relation \"stock\" violates check constraint \"stock_current_qty_check\"")
        self.issues.append(dict(values))
        row["current_qty"] -= values["qty_issued"]

    def insert_supplier(self, values: Mapping[str, Any]) -> Any:
        self._write()
        ident = next(self._ids)
        self.suppliers.append({"id": ident, **values})
        return ident

    def upsert_vendor_price(self, values: Mapping[str, Any]) -> None:
        self._write()
        key = (values["supplier_id"], values["item_code"], values["effective_from"])
        self.vendor_prices[key] = dict(values)

    def insert_price_change(self, values: Mapping[str, Any]) -> None:
        self._write()
        self.price_changes.append(dict(values))
        if values["approval_status"] == "APPROVED":
            self.items[values["item_code"]]["current_price"] = values["proposed_price"]

    def upsert_reorder_rule(self, values: Mapping[str, Any]) -> None:
        self._write()
        self.reorder_rules[(values["item_code"], values["supplier_id"])] = dict(values)

    def insert_bom_line(self, values: Mapping[str, Any]) -> None:
        self._write()
        if any(
            (b["fg_item_code"], b["rm_item_code"]) == (values["fg_item_code"], values["rm_item_code"])
            for b in self.bom_lines
        ):
            raise DuplicateKeyError(
                "duplicate key value violates unique constraint \"bill_of_materials_fg_item_code_rm_item_code_key\""
            )
        self.bom_lines.append(dict(values))


@pytest.fixture()
def store() -> InMemoryStore:
    """An empty in-memory store."""
    return InMemoryStore()


@pytest.fixture()
def settings() -> UploadSettings:
    """Default upload settings, independent of the environment."""
    return UploadSettings()
