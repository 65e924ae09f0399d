from __future__ import annotations

import re
from typing import Any, Collection, Iterable, Mapping

from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.validate.checks import check_duplicate
from stock_ingest.validate.state import BatchState, NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key

_NON_ALPHA = re.compile(r"[^A-Za-z]+")


def generate_supplier_code(name: str, taken: Collection[str]) -> str:
    """
    `SUP` + first three letters of the name + a 3-digit counter, skipping taken codes.

    `("ABC Adhesives", {"SUPABC001"})` -> `"SUPABC002"`.
    """
    base = _NON_ALPHA.sub("", name)[:3].upper()
    counter = 1
    code = f"SUP{base}{counter:03d}"
    while code in taken:
        counter += 1
        code = f"SUP{base}{counter:03d}"
    return code


def supplier_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    """Suppliers are unique by name and, separately, by email."""
    keys: list[NaturalKey] = [("supplier_name", text_key(values["supplier_name"]))]
    if values.get("email"):
        keys.append(("email", text_key(values["email"])))
    return keys


def prepare_supplier(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    keys = tuple(supplier_keys(values))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="supplier")

    taken = set(rc.ctx.supplier_codes) | rc.state.supplier_codes
    code = generate_supplier_code(values["supplier_name"], taken)

    def claim_code(state: BatchState) -> None:
        state.supplier_codes.add(code)

    out = dict(values)
    out["supplier_code"] = code
    return PreparedRow(values=out, keys=keys, on_accept=claim_code)


def write_supplier(store: InventoryStore, prepared: PreparedRow) -> None:
    store.insert_supplier(prepared.values)


SUPPLIERS_HANDLER = UploadHandler(
    upload_type="suppliers",
    profile=get_profile_spec("suppliers"),
    natural_keys=supplier_keys,
    prepare=prepare_supplier,
    write=write_supplier,
)
