from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from stock_ingest.resolve.lookup import suggest

from .normalize import (
    CANONICAL_UOMS,
    CANONICAL_USAGE_TYPES,
    is_canonical_uom,
    is_canonical_usage_type,
    normalize_date,
    normalize_uom,
    normalize_usage_type,
)
from .types import ErrorCode, ParseError


# spreadsheet exports write these for empty cells.
_NULL_STRINGS = {"", "null", "na", "n/a", "-"}


def normalize_cell(v: Any) -> Any:
    """Transform raw CSV cells into normalized shape: stripped text, `None` for empties."""
    if v is None:
        return None
    if isinstance(v, str):
        s = v.strip()
        if s.lower() in _NULL_STRINGS:
            return None
        return s
    return v


## -- text / str fields

def parse_required_text(v: Any, *, field: str) -> str:
    """
    Required text needed to parse a successful row.
    Raises on:
    - `None` typed input.
    - empty strings.
    """
    v = normalize_cell(v)
    if v is None:
        raise ParseError(ErrorCode.missing_field, f"{field} is required")
    s = str(v).strip()
    if s == "":
        raise ParseError(ErrorCode.missing_field, f"{field} is required")
    return s


def parse_optional_text(v: Any) -> str | None:
    """Optional text for a row, `None` when blank."""
    v = normalize_cell(v)
    if v is None:
        return None
    return str(v).strip()


## -- Other typed fields (`None` raises)

def parse_int(v: Any, *, field: str) -> int:
    """Parse integers. Raise on non `int` or `None`."""
    v = normalize_cell(v)
    if v is None:
        raise ParseError(ErrorCode.missing_field, f"{field} is required")
    try:
        # "12.3" or "1e-4" should fail, not be sneakily coerced to `int`
        if isinstance(v, str) and (("." in v) or ("e" in v.lower())):
            raise ValueError(f"input number is non-integer: {v!r}")
        return int(v)
    except (TypeError, ValueError):
        raise ParseError(ErrorCode.invalid_value, f"{field} must be a whole number, got {v!r}", v)


def parse_decimal(v: Any, *, field: str, scale: int = 2, precision: int = 12) -> Decimal:
    """
    Parse numbers into `Decimal` quantized to `scale` places, like Postgres `numeric(precision, scale)`.
    Thousands separators (`1,000`) are accepted. Raise on non numeric or `None`.
    """
    v = normalize_cell(v)
    if v is None:
        raise ParseError(ErrorCode.missing_field, f"{field} is required")
    try:
        d = Decimal(str(v).replace(",", ""))
    except (InvalidOperation, ValueError):
        raise ParseError(ErrorCode.invalid_value, f"{field} must be a valid number, got {v!r}", v)
    if not d.is_finite():
        raise ParseError(ErrorCode.invalid_value, f"{field} must be a valid number, got {v!r}", v)

    q = d.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)

    # total digits (ignoring sign and decimal dot)
    if len(q.as_tuple().digits) > precision:
        raise ParseError(ErrorCode.invalid_value, f"{field} exceeds numeric({precision},{scale}): {v!r}", v)
    return q


def parse_quantity(v: Any, *, field: str) -> Decimal:
    """Stock quantities are stored as `numeric(14,3)`."""
    return parse_decimal(v, field=field, scale=3, precision=14)


def parse_date(v: Any, *, field: str) -> date:
    """Parse a date in any of the accepted upload formats. Raise on `None`."""
    v = normalize_cell(v)
    if v is None:
        raise ParseError(ErrorCode.missing_field, f"{field} is required")
    try:
        return normalize_date(str(v))
    except ParseError as e:
        # re-raise with this field's name in front
        raise ParseError(e.code, f"{field}: {e.detail}", e.value) from None


## -- range guards, applied after a numeric parse

def positive(d: Decimal, *, field: str) -> Decimal:
    """Raise unless `d > 0`."""
    if d <= 0:
        raise ParseError(ErrorCode.invalid_value, f"{field} must be greater than zero, got {d}", d)
    return d


def non_negative(d: Decimal, *, field: str) -> Decimal:
    """Raise unless `d >= 0`."""
    if d < 0:
        raise ParseError(ErrorCode.invalid_value, f"{field} cannot be negative, got {d}", d)
    return d


def parse_percentage(v: Any, *, field: str) -> Decimal:
    """A `numeric(5,2)` share between 0 and 100."""
    d = non_negative(parse_decimal(v, field=field, precision=5), field=field)
    if d > 100:
        raise ParseError(ErrorCode.invalid_value, f"{field} must be between 0 and 100, got {d}", d)
    return d


def parse_days(v: Any, *, field: str, minimum: int = 0) -> int:
    n = parse_int(v, field=field)
    if n < minimum:
        if minimum == 0:
            raise ParseError(ErrorCode.invalid_value, f"{field} cannot be negative, got {n}", n)
        raise ParseError(ErrorCode.invalid_value, f"{field} must be at least {minimum}, got {n}", n)
    return n


## -- enum-like fields

def _enum_reason(field: str, value: str, original: str, allowed: tuple[str, ...]) -> str:
    reason = f"Invalid {field}: {original!r}. Expected one of: {', '.join(allowed)}"
    close = suggest(value, allowed, threshold=0.6, limit=1)
    if close:
        reason += f" (did you mean {close[0]}?)"
    return reason


def parse_uom(v: Any, *, field: str = "uom") -> str:
    """Normalize a unit of measure; reject anything outside the canonical set."""
    s = parse_required_text(v, field=field)
    uom = normalize_uom(s)
    if not is_canonical_uom(uom):
        raise ParseError(ErrorCode.invalid_enum, _enum_reason(field, uom, s, CANONICAL_UOMS), s)
    return uom


def parse_usage_type(v: Any, *, field: str = "usage_type") -> str:
    """Normalize a usage type label; reject anything outside the canonical set."""
    s = parse_optional_text(v)
    usage = normalize_usage_type(s)
    if not is_canonical_usage_type(usage):
        raise ParseError(ErrorCode.invalid_enum, _enum_reason(field, usage, s or "", CANONICAL_USAGE_TYPES), s)
    return usage
