from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from stock_ingest.config import UploadSettings
from stock_ingest.db.store import InventoryStore
from stock_ingest.parsing.registry import ProfileSpec
from stock_ingest.resolve.context import ResolutionContext
from stock_ingest.validate.state import BatchState, NaturalKey


@dataclass(frozen=True)
class PreparedRow:
    """A resolved, validated row: exactly what the writer receives, plus its batch effects."""
    values: dict[str, Any]
    keys: tuple[NaturalKey, ...] = ()
    stock_item: str | None = None           # item whose running balance this row moves
    stock_delta: Decimal = Decimal("0")
    on_accept: Callable[[BatchState], None] | None = field(default=None, repr=False)


@dataclass(frozen=True)
class RowContext:
    """Everything a handler may consult while preparing one row."""
    ctx: ResolutionContext
    state: BatchState
    settings: UploadSettings
    store: InventoryStore


Prepare = Callable[[Mapping[str, Any], RowContext], PreparedRow]
Write = Callable[[InventoryStore, PreparedRow], None]
KeyFn = Callable[[Mapping[str, Any]], Iterable[NaturalKey]]


@dataclass(frozen=True)
class UploadHandler:
    """
    One upload type's behaviour after parsing.

    `prepare` resolves references and validates, raising `RowRejected`.
    `write` persists a prepared row through the store.
    `natural_keys` maps parsed values (or stored rows) to duplicate-check keys.
    """
    upload_type: str
    profile: ProfileSpec
    natural_keys: KeyFn
    prepare: Prepare
    write: Write

    def accept(self, state: BatchState, prepared: PreparedRow, *, source_row: int, ctx: ResolutionContext) -> None:
        """Fold a written (or dry-run validated) row into the batch state."""
        opening = ctx.stock_on_hand(prepared.stock_item) if prepared.stock_item else Decimal("0")
        state.register(
            source_row=source_row,
            keys=prepared.keys,
            stock_item=prepared.stock_item,
            stock_delta=prepared.stock_delta,
            opening=opening,
        )
        if prepared.on_accept is not None:
            prepared.on_accept(state)


def text_key(value: Any) -> str:
    """Case and whitespace insensitive form of a key component."""
    return " ".join(str(value).split()).casefold()
