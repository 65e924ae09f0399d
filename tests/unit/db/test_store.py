from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import psycopg
import pytest
from psycopg.errors import UniqueViolation

from stock_ingest.db import store as store_mod
from stock_ingest.db.errors import DuplicateKeyError, StoreReadError, StoreWriteError
from stock_ingest.db.store import PostgresStore


class FakeConn:
    """Records how each transaction block ended."""

    def __init__(self) -> None:
        self.ended: list[str] = []

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
        except BaseException:
            self.ended.append("rollback")
            raise
        self.ended.append("commit")


def _raiser(exc: Exception):
    def fn(*args: Any, **kwargs: Any) -> None:
        raise exc
    return fn


def test_each_write_is_its_own_transaction(monkeypatch: pytest.MonkeyPatch) -> None:
    """A failed write rolls back only itself."""
    conn = FakeConn()
    monkeypatch.setattr(store_mod.writers, "insert_grn", lambda c, values: None)
    monkeypatch.setattr(
        store_mod.writers, "insert_issue", _raiser(psycopg.OperationalError("server closed the connection\ndetail"))
    )
    s = PostgresStore(conn)  # type: ignore[arg-type]

    s.insert_grn({"grn_number": "G-1"})
    with pytest.raises(StoreWriteError, match="^server closed the connection$"):
        s.insert_issue({"item_code": "RAW_001"})
    s.insert_grn({"grn_number": "G-2"})

    assert conn.ended == ["commit", "rollback", "commit"]


def test_unique_violation_becomes_duplicate_key(monkeypatch: pytest.MonkeyPatch) -> None:
    conn = FakeConn()
    monkeypatch.setattr(
        store_mod.writers,
        "insert_item",
        _raiser(UniqueViolation('duplicate key value violates unique constraint "item_master_pkey"')),
    )

    with pytest.raises(DuplicateKeyError) as e:
        PostgresStore(conn).insert_item({"item_code": "RAW_001"})  # type: ignore[arg-type]

    assert isinstance(e.value, StoreWriteError)
    assert "item_master_pkey" in str(e.value)


def test_read_failures_are_store_read_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    conn = FakeConn()
    monkeypatch.setattr(store_mod.lookups, "fetch_categories", _raiser(psycopg.OperationalError("connection refused")))

    with pytest.raises(StoreReadError, match="connection refused"):
        PostgresStore(conn).list_categories()  # type: ignore[arg-type]


def test_items_become_refs(monkeypatch: pytest.MonkeyPatch) -> None:
    row = {"item_code": "RAW_001", "item_name": "Glue", "uom": "KG", "category_id": 3, "current_price": None,
           "usage_type": "RAW_MATERIAL"}
    monkeypatch.setattr(store_mod.lookups, "fetch_items", lambda c: [row])

    [ref] = PostgresStore(FakeConn()).list_items()  # type: ignore[arg-type]

    assert ref.item_code == "RAW_001"
    assert ref.category_id == 3
    assert ref.usage_type == "RAW_MATERIAL"


def test_new_category_rolls_back_with_its_item(monkeypatch: pytest.MonkeyPatch) -> None:
    """A failed item insert takes the category created for it down too."""
    conn = FakeConn()
    created: list[str] = []

    def insert_category(c: Any, *, name: str) -> int:
        created.append(name)
        return 7

    monkeypatch.setattr(store_mod.writers, "insert_category", insert_category)
    monkeypatch.setattr(store_mod.writers, "insert_item", _raiser(psycopg.DataError("value too long")))

    with pytest.raises(StoreWriteError, match="value too long"):
        PostgresStore(conn).insert_item_with_category(  # type: ignore[arg-type]
            {"item_code": "TAP_001"}, category_name="Tape"
        )

    assert created == ["Tape"]
    assert conn.ended == ["rollback"]


def test_new_category_id_reaches_the_item(monkeypatch: pytest.MonkeyPatch) -> None:
    conn = FakeConn()
    items: list[dict[str, Any]] = []
    monkeypatch.setattr(store_mod.writers, "insert_category", lambda c, *, name: 7)
    monkeypatch.setattr(store_mod.writers, "insert_item", lambda c, values: items.append(dict(values)))

    category_id = PostgresStore(conn).insert_item_with_category(  # type: ignore[arg-type]
        {"item_code": "TAP_001", "category_id": None}, category_name="Tape"
    )

    assert category_id == 7
    assert items == [{"item_code": "TAP_001", "category_id": 7}]
    assert conn.ended == ["commit"]
