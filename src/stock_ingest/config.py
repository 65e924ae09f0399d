"""
Upload settings read from the environment.

Every knob has a default, so an unset environment gives the documented
behaviour. A set but malformed variable raises `RuntimeError` naming it.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache

ENV_PREFIX = "STOCK_INGEST_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _raw(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    return None if value is None else value.strip()


def _get_bool_env(name: str, default: bool) -> bool:
    raw = _raw(name)
    if raw is None:
        return default
    if raw.lower() in _TRUE:
        return True
    if raw.lower() in _FALSE:
        return False
    raise RuntimeError(f"{ENV_PREFIX}{name} must be a boolean (true/false), got {raw!r}.")


def _get_int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}.") from None
    if value < minimum:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}.")
    return value


def _get_decimal_env(name: str, default: Decimal) -> Decimal:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}.") from None
    if not value.is_finite() or value < 0:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be a non-negative number, got {raw!r}.")
    return value


def _get_ratio_env(name: str, default: float) -> float:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}.") from None
    if not 0.0 < value <= 1.0:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be in (0, 1], got {value}.")
    return value


@dataclass(frozen=True)
class UploadSettings:
    """Tunables shared by every upload type."""

    error_display_limit: int = 10               # errors shown before "... and N more"
    suggestion_limit: int = 3                   # near-match names offered per unresolved reference
    similarity_threshold: float = 0.8           # SequenceMatcher ratio for a near match
    max_quantity: Decimal = Decimal("1000000")  # quantities above this are rejected
    auto_approve_threshold: Decimal = Decimal("50")     # percent price change auto-approved
    create_missing_categories: bool = False


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached upload settings.

    Raises RuntimeError if any `STOCK_INGEST_*` variable is set but invalid.
    """
    defaults = UploadSettings()
    return UploadSettings(
        error_display_limit=_get_int_env("ERROR_DISPLAY_LIMIT", defaults.error_display_limit, minimum=1),
        suggestion_limit=_get_int_env("SUGGESTION_LIMIT", defaults.suggestion_limit),
        similarity_threshold=_get_ratio_env("SIMILARITY_THRESHOLD", defaults.similarity_threshold),
        max_quantity=_get_decimal_env("MAX_QUANTITY", defaults.max_quantity),
        auto_approve_threshold=_get_decimal_env("AUTO_APPROVE_THRESHOLD", defaults.auto_approve_threshold),
        create_missing_categories=_get_bool_env("CREATE_MISSING_CATEGORIES", defaults.create_missing_categories),
    )
