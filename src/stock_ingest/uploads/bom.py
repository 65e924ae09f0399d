from __future__ import annotations

from typing import Any, Iterable, Mapping

from stock_ingest.db.store import InventoryStore, ItemRef
from stock_ingest.parsing.normalize import DEFAULT_USAGE_TYPE
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.parsing.types import ErrorCode, RowRejected
from stock_ingest.validate.checks import check_duplicate
from stock_ingest.validate.state import NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key

BOM_VERSION = 1
FINISHED_GOOD = "FINISHED_GOOD"
COMPONENT_USAGE_TYPES: tuple[str, ...] = ("RAW_MATERIAL", "PACKAGING", "CONSUMABLE")


def bom_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    return [("bom_line", text_key(values["fg_item_code"]), text_key(values["rm_item_code"]))]


def _usage(item: ItemRef) -> str:
    return item.usage_type or DEFAULT_USAGE_TYPE


def prepare_bom_line(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    """
    One component line of a finished good's bill of materials.

    The parent must be a finished good and the component a raw material,
    packaging or consumable; the same pair may appear only once.
    """
    fg = rc.ctx.item(values["fg_item_code"])
    rm = rc.ctx.item(values["rm_item_code"])
    if _usage(fg) != FINISHED_GOOD:
        raise RowRejected(
            ErrorCode.invalid_value,
            f"FG item {fg.item_code!r} is not a finished good (usage type {_usage(fg)})",
        )
    if _usage(rm) not in COMPONENT_USAGE_TYPES:
        raise RowRejected(
            ErrorCode.invalid_value,
            f"RM item {rm.item_code!r} cannot be a BOM component (usage type {_usage(rm)}, "
            f"expected one of: {', '.join(COMPONENT_USAGE_TYPES)})",
        )

    out = dict(values)
    out.update(
        fg_item_code=fg.item_code,
        rm_item_code=rm.item_code,
        bom_version=BOM_VERSION,
        effective_date=rc.state.today,
    )
    keys = tuple(bom_keys(out))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="BOM line for FG / RM item")
    return PreparedRow(values=out, keys=keys)


def write_bom_line(store: InventoryStore, prepared: PreparedRow) -> None:
    store.insert_bom_line(prepared.values)


BOM_HANDLER = UploadHandler(
    upload_type="bom",
    profile=get_profile_spec("bom"),
    natural_keys=bom_keys,
    prepare=prepare_bom_line,
    write=write_bom_line,
)
