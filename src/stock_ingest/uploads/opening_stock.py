from __future__ import annotations

from typing import Any, Iterable, Mapping

from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.validate.checks import check_duplicate, check_max_quantity
from stock_ingest.validate.state import NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key

# marks the audit GRN written alongside each opening balance
OPENING_STOCK_VENDOR = "OPENING_STOCK"
OPENING_STOCK_TRANSACTION = "OPENING_STOCK"


def opening_grn_number(item_code: str) -> str:
    return f"OPENING-{item_code}"


def opening_stock_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    # an item gets one opening balance; any existing stock row counts
    return [("item_code", text_key(values["item_code"]))]


def prepare_opening_stock(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    item = rc.ctx.item(values["item_code"])
    keys = tuple(opening_stock_keys({"item_code": item.item_code}))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="opening stock for item")
    check_max_quantity(values["opening_qty"], field="opening_qty", settings=rc.settings)

    out = dict(values)
    out.update(
        item_code=item.item_code,
        item_name=item.item_name,
        uom=item.uom,
        date=values.get("date") or rc.state.today,
        grn_number=opening_grn_number(item.item_code),
        vendor=OPENING_STOCK_VENDOR,
        transaction_type=OPENING_STOCK_TRANSACTION,
    )
    return PreparedRow(values=out, keys=keys, stock_item=item.item_code, stock_delta=values["opening_qty"])


def write_opening_stock(store: InventoryStore, prepared: PreparedRow) -> None:
    store.insert_opening_stock(prepared.values)


OPENING_STOCK_HANDLER = UploadHandler(
    upload_type="opening_stock",
    profile=get_profile_spec("opening_stock"),
    natural_keys=opening_stock_keys,
    prepare=prepare_opening_stock,
    write=write_opening_stock,
)
