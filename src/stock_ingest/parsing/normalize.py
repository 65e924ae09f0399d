"""
Field normalization: maps loosely formatted spreadsheet input to canonical values.

Every function here is pure. Unknown enum-like values are passed through
upper-cased so the validator can reject them with a useful message.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from .types import ErrorCode, ParseError


## -- units of measure

CANONICAL_UOMS: tuple[str, ...] = ("PCS", "KG", "MTR", "SQM", "LTR", "BOX", "ROLL")

_UOM_SYNONYMS: dict[str, str] = {
    "pcs": "PCS", "pc": "PCS", "piece": "PCS", "pieces": "PCS",
    "nos": "PCS", "no": "PCS", "number": "PCS", "numbers": "PCS", "ea": "PCS", "each": "PCS",
    "kg": "KG", "kgs": "KG", "kilo": "KG", "kilogram": "KG", "kilograms": "KG",
    "mtr": "MTR", "mtrs": "MTR", "m": "MTR", "meter": "MTR", "meters": "MTR", "metre": "MTR", "metres": "MTR",
    "sqm": "SQM", "sq m": "SQM", "sq.m": "SQM", "m2": "SQM", "square meter": "SQM", "square metre": "SQM",
    "ltr": "LTR", "ltrs": "LTR", "l": "LTR", "litre": "LTR", "litres": "LTR", "liter": "LTR", "liters": "LTR",
    "box": "BOX", "boxes": "BOX", "bx": "BOX",
    "roll": "ROLL", "rolls": "ROLL",
}


def _squash(s: str) -> str:
    """lower case, single spaces."""
    return " ".join(s.split()).lower()


def normalize_uom(text: str) -> str:
    """
    Case-insensitive synonym lookup into `CANONICAL_UOMS`.

    `"nos"` -> `"PCS"`, `"Boxes"` -> `"BOX"`. Values with no synonym come back
    stripped and upper-cased. Canonical values map to themselves.
    """
    key = _squash(text)
    return _UOM_SYNONYMS.get(key, text.strip().upper())


def is_canonical_uom(value: str) -> bool:
    return value in CANONICAL_UOMS


## -- usage types

CANONICAL_USAGE_TYPES: tuple[str, ...] = ("RAW_MATERIAL", "FINISHED_GOOD", "WIP", "PACKAGING", "CONSUMABLE")

DEFAULT_USAGE_TYPE = "RAW_MATERIAL"

_USAGE_SYNONYMS: dict[str, str] = {
    # material families used on the shop floor are all raw material
    "wrapper": "RAW_MATERIAL",
    "lamination": "RAW_MATERIAL",
    "coating": "RAW_MATERIAL",
    "adhesive": "RAW_MATERIAL",
    "film": "RAW_MATERIAL",
    "paper": "RAW_MATERIAL",
    "ink": "RAW_MATERIAL",
    "solvent": "RAW_MATERIAL",
    "chemical": "RAW_MATERIAL",
    "raw": "RAW_MATERIAL",
    "raw material": "RAW_MATERIAL",
    "raw_material": "RAW_MATERIAL",
    "packaging": "PACKAGING",
    "consumable": "CONSUMABLE",
    "consumables": "CONSUMABLE",
    "finished": "FINISHED_GOOD",
    "finished good": "FINISHED_GOOD",
    "finished goods": "FINISHED_GOOD",
    "finished_good": "FINISHED_GOOD",
    "fg": "FINISHED_GOOD",
    "wip": "WIP",
    "work in progress": "WIP",
}


def normalize_usage_type(text: str | None) -> str:
    """Blank -> `RAW_MATERIAL`; synonyms -> canonical; anything else upper-cased."""
    if text is None or text.strip() == "":
        return DEFAULT_USAGE_TYPE
    key = _squash(text)
    return _USAGE_SYNONYMS.get(key, key.upper().replace(" ", "_"))


def is_canonical_usage_type(value: str) -> bool:
    return value in CANONICAL_USAGE_TYPES


## -- dates

# day-first, as the upload templates are filled in on Indian-locale spreadsheets.
_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d-%b-%Y",
    "%d %b %Y",
    "%d-%B-%Y",
    "%d %B %Y",
)

_ISO_DATETIME = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]\d{2}:\d{2}")


def normalize_date(text: str) -> date:
    """
    Parse any accepted upload date format into a `date`.

    Raises `ParseError(invalid_value)` carrying the original string on failure.
    """
    s = text.strip()
    m = _ISO_DATETIME.match(s)
    if m:
        s = m.group(1)

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue

    raise ParseError(
        ErrorCode.invalid_value,
        f"invalid date {text!r} (expected YYYY-MM-DD or DD/MM/YYYY)",
        text,
    )


## -- numbers embedded in text

_FIRST_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def extract_number(text: str | None) -> Decimal | None:
    """
    First numeric substring of a mixed field, e.g. `"80 GSM"` -> `Decimal("80")`.
    Returns `None` on blank input or when no digits are present.
    """
    if text is None:
        return None
    m = _FIRST_NUMBER.search(str(text))
    if m is None:
        return None
    try:
        return Decimal(m.group(0))
    except InvalidOperation:
        return None


## -- headers

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_header(text: str) -> str:
    """`"Item Code "` -> `"item_code"`, `"Qty (KG)"` -> `"qty_kg"`."""
    return _NON_ALNUM.sub("_", text.strip().lower()).strip("_")
