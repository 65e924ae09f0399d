from __future__ import annotations

from typing import Any, Iterable, Mapping

from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.validate.checks import check_duplicate, check_max_quantity
from stock_ingest.validate.state import NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key


def grn_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    return [("grn_number", text_key(values["grn_number"]))]


def prepare_grn(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    keys = tuple(grn_keys(values))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="GRN number")
    item = rc.ctx.item(values["item_code"])
    check_max_quantity(values["qty_received"], field="qty_received", settings=rc.settings)

    out = dict(values)
    out.update(item_code=item.item_code, item_name=item.item_name)
    return PreparedRow(values=out, keys=keys, stock_item=item.item_code, stock_delta=values["qty_received"])


def write_grn(store: InventoryStore, prepared: PreparedRow) -> None:
    store.insert_grn(prepared.values)


GRN_HANDLER = UploadHandler(
    upload_type="grn",
    profile=get_profile_spec("grn"),
    natural_keys=grn_keys,
    prepare=prepare_grn,
    write=write_grn,
)
