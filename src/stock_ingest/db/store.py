"""
The storage seam the upload pipeline writes through.

`InventoryStore` is what the pipeline and upload handlers depend on.
`PostgresStore` implements it over one psycopg connection: every call runs
in its own transaction, so a failed row never takes earlier rows with it.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Iterator, Mapping, Protocol

import psycopg
from psycopg import Connection
from psycopg.errors import UniqueViolation

from . import lookups, writers
from .errors import DuplicateKeyError, StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ItemRef:
    """An item master entry as the resolver sees it."""
    item_code: str
    item_name: str
    uom: str
    category_id: Any = None
    current_price: Decimal | None = None
    usage_type: str | None = None


@dataclass(frozen=True, slots=True)
class SupplierRef:
    id: Any
    supplier_code: str
    supplier_name: str
    email: str | None = None
    is_active: bool = True


class InventoryStore(Protocol):
    """Reads reference data once per upload, then writes one row at a time."""

    # -- reads
    def list_categories(self) -> list[tuple[str, Any]]: ...
    def list_items(self) -> list[ItemRef]: ...
    def list_suppliers(self) -> list[SupplierRef]: ...
    def stock_on_hand(self) -> dict[str, Decimal]: ...
    def existing_key_rows(self, upload_type: str) -> Iterable[Mapping[str, Any]]: ...

    # -- writes
    def insert_item(self, values: Mapping[str, Any]) -> None: ...
    def insert_item_with_category(self, values: Mapping[str, Any], *, category_name: str) -> Any: ...
    def insert_opening_stock(self, values: Mapping[str, Any]) -> None: ...
    def insert_grn(self, values: Mapping[str, Any]) -> None: ...
    def insert_issue(self, values: Mapping[str, Any]) -> None: ...
    def insert_supplier(self, values: Mapping[str, Any]) -> Any: ...
    def upsert_vendor_price(self, values: Mapping[str, Any]) -> None: ...
    def insert_price_change(self, values: Mapping[str, Any]) -> None: ...
    def upsert_reorder_rule(self, values: Mapping[str, Any]) -> None: ...
    def insert_bom_line(self, values: Mapping[str, Any]) -> None: ...


def _message(e: psycopg.Error) -> str:
    """First line of the server message, e.g. `duplicate key value violates unique constraint ...`."""
    lines = str(e).strip().splitlines()
    return lines[0] if lines else type(e).__name__


class PostgresStore:
    """`InventoryStore` over a psycopg connection with autocommit off."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @contextmanager
    def _read(self) -> Iterator[Connection]:
        try:
            with self.conn.transaction():
                yield self.conn
        except psycopg.Error as e:
            raise StoreReadError(_message(e)) from e

    @contextmanager
    def _write(self) -> Iterator[Connection]:
        try:
            with self.conn.transaction():
                yield self.conn
        except UniqueViolation as e:
            raise DuplicateKeyError(_message(e)) from e
        except psycopg.Error as e:
            logger.warning("write rolled back: %s", _message(e))
            raise StoreWriteError(_message(e)) from e

    ## -- reads

    def list_categories(self) -> list[tuple[str, Any]]:
        with self._read() as conn:
            return lookups.fetch_categories(conn)

    def list_items(self) -> list[ItemRef]:
        with self._read() as conn:
            rows = lookups.fetch_items(conn)
        return [
            ItemRef(
                item_code=r["item_code"],
                item_name=r["item_name"],
                uom=r["uom"],
                category_id=r["category_id"],
                current_price=r["current_price"],
                usage_type=r["usage_type"],
            )
            for r in rows
        ]

    def list_suppliers(self) -> list[SupplierRef]:
        with self._read() as conn:
            rows = lookups.fetch_suppliers(conn)
        return [
            SupplierRef(
                id=r["id"],
                supplier_code=r["supplier_code"],
                supplier_name=r["supplier_name"],
                email=r["email"],
                is_active=r["is_active"],
            )
            for r in rows
        ]

    def stock_on_hand(self) -> dict[str, Decimal]:
        with self._read() as conn:
            return lookups.fetch_stock_on_hand(conn)

    def existing_key_rows(self, upload_type: str) -> Iterable[Mapping[str, Any]]:
        with self._read() as conn:
            return list(lookups.fetch_existing_key_rows(conn, upload_type))

    ## -- writes, one transaction each

    def insert_item(self, values: Mapping[str, Any]) -> None:
        with self._write() as conn:
            writers.insert_item(conn, values)

    def insert_item_with_category(self, values: Mapping[str, Any], *, category_name: str) -> Any:
        """Create `category_name` and the item under it in one transaction. Returns the new category id."""
        with self._write() as conn:
            category_id = writers.insert_category(conn, name=category_name)
            writers.insert_item(conn, {**values, "category_id": category_id})
        return category_id

    def insert_opening_stock(self, values: Mapping[str, Any]) -> None:
        with self._write() as conn:
            writers.insert_opening_stock(conn, values)

    def insert_grn(self, values: Mapping[str, Any]) -> None:
        with self._write() as conn:
            writers.insert_grn(conn, values)

    def insert_issue(self, values: Mapping[str, Any]) -> None:
        with self._write() as conn:
            writers.insert_issue(conn, values)

    def insert_supplier(self, values: Mapping[str, Any]) -> Any:
        with self._write() as conn:
            return writers.insert_supplier(conn, values)

    def upsert_vendor_price(self, values: Mapping[str, Any]) -> None:
        with self._write() as conn:
            writers.upsert_vendor_price(conn, values)

    def insert_price_change(self, values: Mapping[str, Any]) -> None:
        with self._write() as conn:
            writers.insert_price_change(conn, values)

    def upsert_reorder_rule(self, values: Mapping[str, Any]) -> None:
        with self._write() as conn:
            writers.upsert_reorder_rule(conn, values)

    def insert_bom_line(self, values: Mapping[str, Any]) -> None:
        with self._write() as conn:
            writers.insert_bom_line(conn, values)
