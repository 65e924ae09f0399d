from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from stock_ingest.config import UploadSettings
from stock_ingest.parsing.types import ErrorCode, RowRejected
from stock_ingest.resolve.context import ResolutionContext

from .state import BatchState, NaturalKey


def _describe(key: NaturalKey) -> str:
    # keys are ("kind", value, ...); drop the kind tag
    return " / ".join(str(part) for part in key[1:]) or str(key)


def check_duplicate(keys: Iterable[NaturalKey], *, ctx: ResolutionContext, state: BatchState, label: str) -> None:
    """
    Reject a row whose natural key already exists in the store, or was
    accepted earlier in this upload.
    """
    for key in keys:
        if key in ctx.existing_keys:
            raise RowRejected(ErrorCode.duplicate_key, f"Duplicate {label}: {_describe(key)} already exists")
        first = state.first_row_for(key)
        if first is not None:
            raise RowRejected(
                ErrorCode.duplicate_key,
                f"Duplicate {label}: {_describe(key)} already appears in row {first}",
            )


def check_max_quantity(qty: Decimal, *, field: str, settings: UploadSettings) -> None:
    if qty > settings.max_quantity:
        raise RowRejected(
            ErrorCode.invalid_value,
            f"{field} {qty} exceeds the maximum allowed quantity of {settings.max_quantity}",
        )


def available_stock(item_code: str, *, ctx: ResolutionContext, state: BatchState) -> Decimal:
    """Stock on hand adjusted by every row accepted so far in this upload."""
    if item_code in state.balances:
        return state.balances[item_code]
    return ctx.stock_on_hand(item_code)


def check_stock(item_code: str, requested: Decimal, *, ctx: ResolutionContext, state: BatchState) -> None:
    """Reject an issue larger than the running balance of `item_code`."""
    available = available_stock(item_code, ctx=ctx, state=state)
    if requested > available:
        raise RowRejected(
            ErrorCode.insufficient_stock,
            f"Insufficient stock for {item_code}: available {available.normalize():f}, "
            f"requested {requested.normalize():f}",
        )
