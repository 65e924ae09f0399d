from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Mapping

from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.validate.checks import check_duplicate
from stock_ingest.validate.state import BatchState, NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key

APPROVED = "APPROVED"
REQUIRES_REVIEW = "REQUIRES_REVIEW"


def item_pricing_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    return [("price_change", text_key(values["item_code"]), values["effective_date"])]


def change_percentage(old: Decimal, new: Decimal) -> Decimal:
    """Signed percent change from `old` to `new`, two decimals."""
    return ((new - old) / old * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def approval_for(old: Decimal | None, new: Decimal, *, threshold: Decimal) -> tuple[str, Decimal | None]:
    """
    `(approval_status, change_percentage)`.

    Changes within `threshold` percent either way are approved. An item with
    no current price always needs review.
    """
    if old is None or old == 0:
        return REQUIRES_REVIEW, None
    pct = change_percentage(old, new)
    return (APPROVED if abs(pct) <= threshold else REQUIRES_REVIEW), pct


def prepare_price_change(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    item = rc.ctx.item(values["item_code"])
    out = dict(values)
    out.update(item_code=item.item_code, effective_date=values.get("effective_date") or rc.state.today)

    keys = tuple(item_pricing_keys(out))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="price change for item / date")

    # an approved change earlier in this file is the new baseline
    old = rc.state.current_prices.get(item.item_code, item.current_price)
    status, pct = approval_for(old, values["proposed_price"], threshold=rc.settings.auto_approve_threshold)
    out.update(old_price=old, change_percentage=pct, approval_status=status)

    def track_price(state: BatchState) -> None:
        if status == APPROVED:
            state.current_prices[item.item_code] = values["proposed_price"]

    return PreparedRow(values=out, keys=keys, on_accept=track_price)


def write_price_change(store: InventoryStore, prepared: PreparedRow) -> None:
    store.insert_price_change(prepared.values)


ITEM_PRICING_HANDLER = UploadHandler(
    upload_type="item_pricing",
    profile=get_profile_spec("item_pricing"),
    natural_keys=item_pricing_keys,
    prepare=prepare_price_change,
    write=write_price_change,
)
