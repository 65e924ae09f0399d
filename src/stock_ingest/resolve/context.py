"""
Reference data loaded once per upload.

The context is a snapshot of the store taken before the first row is
processed. It is never mutated afterwards; anything an upload adds along
the way lives in `BatchState`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from stock_ingest.config import UploadSettings
from stock_ingest.db.errors import StoreError
from stock_ingest.db.store import InventoryStore, ItemRef, SupplierRef
from stock_ingest.ingest.errors import ResolverInitError
from stock_ingest.validate.state import NaturalKey

from .lookup import LookupTable

logger = logging.getLogger(__name__)

KeyFn = Callable[[Mapping[str, Any]], Iterable[NaturalKey]]


@dataclass(frozen=True)
class ResolutionContext:
    items: LookupTable[str]                 # item code -> stored item code
    item_refs: Mapping[str, ItemRef]        # stored item code -> item
    categories: LookupTable[Any]            # category name -> id
    suppliers: LookupTable[Any]             # supplier name -> id
    supplier_codes: Mapping[str, Any]       # upper-cased supplier code -> id
    stock: Mapping[str, Decimal]            # stored item code -> quantity on hand
    supplier_refs: Mapping[Any, SupplierRef] = field(default_factory=dict)    # id -> supplier
    existing_keys: frozenset[NaturalKey] = field(default_factory=frozenset)

    def item(self, code: str) -> ItemRef:
        """The item master entry for `code`. Raises `RowRejected(unresolved_reference)`."""
        return self.item_refs[self.items.resolve(code)]

    def stock_on_hand(self, item_code: str) -> Decimal:
        return self.stock.get(item_code, Decimal("0"))


def build_context(
    store: InventoryStore,
    *,
    upload_type: str,
    key_fn: KeyFn,
    settings: UploadSettings,
) -> ResolutionContext:
    """
    Load every lookup the upload needs.

    `key_fn` maps a stored row to the natural keys the upload type checks
    for duplicates. Raises `ResolverInitError` when the store cannot be read.
    """
    opts = {"threshold": settings.similarity_threshold, "limit": settings.suggestion_limit}
    try:
        item_refs = {ref.item_code: ref for ref in store.list_items()}
        categories = store.list_categories()
        suppliers = store.list_suppliers()
        stock = store.stock_on_hand()
        key_rows = list(store.existing_key_rows(upload_type))
    except StoreError as e:
        raise ResolverInitError(f"could not load reference data for {upload_type} upload: {e}") from e

    existing: set[NaturalKey] = set()
    for row in key_rows:
        existing.update(key_fn(row))

    ctx = ResolutionContext(
        items=LookupTable.build("Item", ((code, code) for code in item_refs), **opts),
        item_refs=item_refs,
        categories=LookupTable.build("Category", categories, **opts),
        suppliers=LookupTable.build("Supplier", ((s.supplier_name, s.id) for s in suppliers), **opts),
        supplier_codes={s.supplier_code.upper(): s.id for s in suppliers if s.supplier_code},
        supplier_refs={s.id: s for s in suppliers},
        stock=dict(stock),
        existing_keys=frozenset(existing),
    )
    logger.info(
        "loaded reference data: items=%d categories=%d suppliers=%d existing_keys=%d",
        len(item_refs), len(ctx.categories), len(ctx.suppliers), len(existing),
    )
    return ctx
