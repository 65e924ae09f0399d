from __future__ import annotations

from typing import Any, Iterable, Mapping

from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.parsing.types import ErrorCode, RowRejected
from stock_ingest.resolve.lookup import suggest
from stock_ingest.validate.checks import check_duplicate
from stock_ingest.validate.state import NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key


def vendor_price_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    # resolved values only: the supplier id stands in for name or code
    return [("vendor_price", values["supplier_id"], text_key(values["item_code"]), values["effective_from"])]


def resolve_supplier(values: Mapping[str, Any], rc: RowContext) -> Any:
    """Supplier code wins over name when both are given."""
    code = values.get("supplier_code")
    if code:
        supplier_id = rc.ctx.supplier_codes.get(code.upper())
        if supplier_id is None:
            hints = suggest(
                code.upper(),
                rc.ctx.supplier_codes,
                threshold=rc.settings.similarity_threshold,
                limit=rc.settings.suggestion_limit,
            )
            reason = f"Supplier code not found: {code!r}"
            if hints:
                reason += f". Did you mean: {', '.join(hints)}?"
            raise RowRejected(ErrorCode.unresolved_reference, reason, suggestions=hints)
        return supplier_id

    name = values.get("supplier_name")
    if not name:
        raise RowRejected(ErrorCode.missing_field, "supplier_name or supplier_code is required")
    return rc.ctx.suppliers.resolve(name)


def prepare_vendor_price(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    supplier_id = resolve_supplier(values, rc)
    item = rc.ctx.item(values["item_code"])

    out = dict(values)
    out.update(
        supplier_id=supplier_id,
        item_code=item.item_code,
        effective_from=values.get("effective_from") or rc.state.today,
    )
    if out["effective_to"] is not None and out["effective_to"] < out["effective_from"]:
        raise RowRejected(
            ErrorCode.invalid_value,
            f"effective_to {out['effective_to']} is before effective_from {out['effective_from']}",
        )

    # the store upserts on this key, so only repeats inside one file are rejected
    keys = tuple(vendor_price_keys(out))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="price entry for supplier / item / date")
    return PreparedRow(values=out, keys=keys)


def write_vendor_price(store: InventoryStore, prepared: PreparedRow) -> None:
    store.upsert_vendor_price(prepared.values)



VENDOR_PRICES_HANDLER = UploadHandler(
    upload_type="vendor_prices",
    profile=get_profile_spec("vendor_prices"),
    natural_keys=vendor_price_keys,
    prepare=prepare_vendor_price,
    write=write_vendor_price,
)
