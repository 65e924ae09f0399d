from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Hashable, Iterable

NaturalKey = tuple[Hashable, ...]


@dataclass
class BatchState:
    """
    What one upload has accepted so far. Created per upload, passed explicitly.

    - `seen_keys`: natural key -> source row that first claimed it.
    - `balances`: running stock per item, only for items this batch touched.
    - `created_categories`: lookup key -> (display name, id) for categories made on the fly.
    - `supplier_codes`: codes handed out to suppliers accepted in this batch.
    - `current_prices`: item prices approved earlier in this batch.
    """
    today: date = field(default_factory=date.today)
    dry_run: bool = False
    seen_keys: dict[NaturalKey, int] = field(default_factory=dict)
    balances: dict[str, Decimal] = field(default_factory=dict)
    created_categories: dict[str, tuple[str, Any]] = field(default_factory=dict)
    supplier_codes: set[str] = field(default_factory=set)
    current_prices: dict[str, Decimal] = field(default_factory=dict)

    def first_row_for(self, key: NaturalKey) -> int | None:
        return self.seen_keys.get(key)

    def register(
        self,
        *,
        source_row: int,
        keys: Iterable[NaturalKey] = (),
        stock_item: str | None = None,
        stock_delta: Decimal = Decimal("0"),
        opening: Decimal = Decimal("0"),
    ) -> None:
        """
        Record an accepted row. Call only after its write succeeded.

        `opening` is the stock on hand before this batch, used the first time
        an item's balance moves.
        """
        for key in keys:
            self.seen_keys.setdefault(key, source_row)
        if stock_item is not None:
            self.balances[stock_item] = self.balances.get(stock_item, opening) + stock_delta
