from __future__ import annotations

from typing import Any, Iterable, Mapping

from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.validate.checks import check_duplicate, check_max_quantity, check_stock
from stock_ingest.validate.state import NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key


def issue_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    # Decimal("500") == Decimal("500.000") and they hash alike
    return [("issue", text_key(values["item_code"]), values["date"], values["qty_issued"])]


def prepare_issue(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    item = rc.ctx.item(values["item_code"])
    out = dict(values)
    out.update(item_code=item.item_code, item_name=item.item_name)

    keys = tuple(issue_keys(out))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="issue")
    check_max_quantity(values["qty_issued"], field="qty_issued", settings=rc.settings)
    check_stock(item.item_code, values["qty_issued"], ctx=rc.ctx, state=rc.state)

    return PreparedRow(values=out, keys=keys, stock_item=item.item_code, stock_delta=-values["qty_issued"])


def write_issue(store: InventoryStore, prepared: PreparedRow) -> None:
    store.insert_issue(prepared.values)


ISSUES_HANDLER = UploadHandler(
    upload_type="issues",
    profile=get_profile_spec("issues"),
    natural_keys=issue_keys,
    prepare=prepare_issue,
    write=write_issue,
)
