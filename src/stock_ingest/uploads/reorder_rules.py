from __future__ import annotations

from typing import Any, Iterable, Mapping

from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.parsing.types import ErrorCode, RowRejected
from stock_ingest.validate.checks import check_duplicate
from stock_ingest.validate.state import NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key


def reorder_rule_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    return [("reorder_rule", text_key(values["item_code"]), values["supplier_id"])]


def prepare_reorder_rule(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    item = rc.ctx.item(values["item_code"])
    supplier_id = rc.ctx.suppliers.resolve(values["supplier_name"])
    supplier = rc.ctx.supplier_refs.get(supplier_id)
    if supplier is not None and not supplier.is_active:
        raise RowRejected(ErrorCode.invalid_value, f"Supplier {supplier.supplier_name!r} is inactive")

    out = dict(values)
    out.update(item_code=item.item_code, supplier_id=supplier_id)

    # upserted on item / supplier, so only repeats inside one file are rejected
    keys = tuple(reorder_rule_keys(out))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="reorder rule for item / supplier")
    return PreparedRow(values=out, keys=keys)


def write_reorder_rule(store: InventoryStore, prepared: PreparedRow) -> None:
    store.upsert_reorder_rule(prepared.values)


REORDER_RULES_HANDLER = UploadHandler(
    upload_type="reorder_rules",
    profile=get_profile_spec("reorder_rules"),
    natural_keys=reorder_rule_keys,
    prepare=prepare_reorder_rule,
    write=write_reorder_rule,
)
