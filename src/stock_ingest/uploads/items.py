from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Any, Iterable, Mapping

from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import get_profile_spec
from stock_ingest.parsing.types import ErrorCode, RowRejected
from stock_ingest.resolve.lookup import lookup_key, suggest
from stock_ingest.validate.checks import check_duplicate
from stock_ingest.validate.state import BatchState, NaturalKey

from .base import PreparedRow, RowContext, UploadHandler, text_key

logger = logging.getLogger(__name__)

_CODE_PART = re.compile(r"[^A-Z0-9]+")
_DECIMAL_POINT = re.compile(r"(?<=\d)\.(?=\d)")


def _code_part(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        value = value.normalize()
        value = f"{value:f}"
    # keep the decimal point as `P`: 18.5 -> 18P5, never 185
    return _CODE_PART.sub("", _DECIMAL_POINT.sub("P", str(value).upper()))


def generate_item_code(*, category_name: str, qualifier: str | None, size_mm: str | None, gsm: Decimal | None) -> str:
    """
    `CAT_QUALIFIER_SIZE_GSM`, skipping blank parts.

    `("Adhesive", "ADH", None, 117)` -> `"ADH_ADH_117"`,
    `("Film", "BOPP", "1000", 18.5)` -> `"FIL_BOPP_1000_18P5"`.
    """
    parts = [_code_part(category_name)[:3], _code_part(qualifier), _code_part(size_mm), _code_part(gsm)]
    return "_".join(p for p in parts if p)


def item_keys(values: Mapping[str, Any]) -> Iterable[NaturalKey]:
    code = values.get("item_code")
    return [("item_code", text_key(code))] if code else []


def resolve_category(name: str, rc: RowContext) -> tuple[Any, str | None]:
    """
    `(category_id, name_to_create)` for `name`.

    A missing category is only created when allowed and nothing similar
    exists, so a typo never turns into a near-duplicate category. The
    creation itself happens with the item write; until then the id is `None`.
    """
    ctx, state = rc.ctx, rc.state
    if name in ctx.categories:
        # unique match, or an ambiguity that `resolve` reports
        return ctx.categories.resolve(name), None

    created = state.created_categories.get(lookup_key(name))
    if created is not None:
        return created[1], None

    if not rc.settings.create_missing_categories:
        # raises unresolved_reference with suggestions
        return ctx.categories.resolve(name), None

    candidates = ctx.categories.names() + [display for display, _ in state.created_categories.values()]
    hints = suggest(name, candidates, threshold=rc.settings.similarity_threshold, limit=rc.settings.suggestion_limit)
    if hints:
        raise RowRejected(
            ErrorCode.unresolved_reference,
            f"Category not found: {name!r}. Did you mean: {', '.join(hints)}? "
            f"(not created, too close to an existing category)",
            suggestions=hints,
        )
    return None, " ".join(name.split())


def prepare_item(values: Mapping[str, Any], rc: RowContext) -> PreparedRow:
    out = dict(values)
    if not out.get("item_code"):
        out["item_code"] = generate_item_code(
            category_name=values["category_name"],
            qualifier=values.get("qualifier"),
            size_mm=values.get("size_mm"),
            gsm=values.get("gsm"),
        )
        if not out["item_code"]:
            raise RowRejected(ErrorCode.invalid_value, "item_code is blank and cannot be generated from category_name")
    keys = tuple(item_keys(out))
    check_duplicate(keys, ctx=rc.ctx, state=rc.state, label="item code")
    out["category_id"], new_category = resolve_category(values["category_name"], rc)
    out["new_category_name"] = new_category

    def remember_category(state: BatchState) -> None:
        # `write_item` has filled in the id by now (still `None` on a dry run)
        if new_category is not None:
            state.created_categories[lookup_key(new_category)] = (new_category, out["category_id"])

    return PreparedRow(values=out, keys=keys, on_accept=remember_category)


def write_item(store: InventoryStore, prepared: PreparedRow) -> None:
    new_category = prepared.values.get("new_category_name")
    if new_category is None:
        store.insert_item(prepared.values)
        return
    prepared.values["category_id"] = store.insert_item_with_category(prepared.values, category_name=new_category)
    logger.info("created category %r for item %s", new_category, prepared.values["item_code"])


ITEMS_HANDLER = UploadHandler(
    upload_type="items",
    profile=get_profile_spec("items"),
    natural_keys=item_keys,
    prepare=prepare_item,
    write=write_item,
)
