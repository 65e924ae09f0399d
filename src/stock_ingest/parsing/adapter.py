from __future__ import annotations

from typing import Any, Mapping

from stock_ingest.parsing.normalize import normalize_header


def adapt_row(      # canonicalize keys
    raw: Mapping[str, Any],
    *,
    aliases: Mapping[str, str],
) -> dict[str, Any]:
    """
    Map raw input keys to canonical keys using `aliases`.

    Header lookup is tolerant: `"Item Code"`, `"item code"` and `"ITEM_CODE"`
    all normalize to `item_code` before the alias lookup.
    `aliases` keys must already be normalized, e.g.
      `{"item_code": "item_code", "itemcode": "item_code", "code": "item_code", ...}`

    Columns not in `aliases` are ignored. When two input columns map to the
    same canonical key, the first non-blank one (in column order) wins.
    """
    out: dict[str, Any] = {}

    for k, v in raw.items():
        if k is None:
            # csv.DictReader puts surplus cells under a `None` key
            continue
        canon = aliases.get(normalize_header(str(k)))
        if canon is None:
            continue
        if not str(out.get(canon) or "").strip():
            out[canon] = v

    return out


def alias_table(canonical: Mapping[str, tuple[str, ...]]) -> dict[str, str]:
    """
    Build the flat alias lookup from `{canonical: (variant, ...)}`.
    The canonical name is always accepted for itself.
    """
    table: dict[str, str] = {}
    for canon, variants in canonical.items():
        table[normalize_header(canon)] = canon
        for variant in variants:
            table.setdefault(normalize_header(variant), canon)
    return table
