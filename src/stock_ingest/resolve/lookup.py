"""
Name -> id lookups built once per upload, with near-match suggestions.

Matching is case-insensitive and whitespace tolerant. Suggestions use
`difflib.SequenceMatcher` ratios with a fixed threshold, plus substring
containment so `"Adhesive"` still suggests `"Adhesives & Glues"`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Generic, Hashable, Iterable, TypeVar

from stock_ingest.parsing.types import ErrorCode, RowRejected

DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_SUGGESTION_LIMIT = 3

IdT = TypeVar("IdT", bound=Hashable)


def lookup_key(name: str) -> str:
    """`"  Raw   Material "` -> `"raw material"`."""
    return " ".join(name.split()).casefold()


def suggest(
    name: str,
    candidates: Iterable[str],
    *,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> list[str]:
    """
    Near matches for `name`, best first.

    A candidate qualifies when its similarity is >= `threshold`, or when one
    normalized name contains the other (and the shorter is at least 3 chars).
    Exact key matches are not suggestions.
    """
    key = lookup_key(name)
    if not key:
        return []

    scored: list[tuple[float, str]] = []
    seen: set[str] = set()
    for cand in candidates:
        ck = lookup_key(cand)
        if not ck or ck == key or ck in seen:
            continue
        seen.add(ck)
        score = SequenceMatcher(None, key, ck).ratio()
        contained = min(len(key), len(ck)) >= 3 and (key in ck or ck in key)
        if score >= threshold or contained:
            scored.append((score, cand))

    # stable for equal scores: alphabetical
    scored.sort(key=lambda sc: (-sc[0], sc[1]))
    return [cand for _, cand in scored[:limit]]


@dataclass
class LookupTable(Generic[IdT]):
    """
    Reference data for one entity kind (e.g. categories), keyed by normalized name.

    Several display names may share a key. When they carry different ids the
    key is ambiguous and `resolve` refuses to pick one.
    """
    kind: str
    _ids: dict[str, set[IdT]] = field(default_factory=dict)
    _names: dict[str, list[str]] = field(default_factory=dict)
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    limit: int = DEFAULT_SUGGESTION_LIMIT

    @classmethod
    def build(
        cls,
        kind: str,
        pairs: Iterable[tuple[str | None, IdT]],
        *,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        limit: int = DEFAULT_SUGGESTION_LIMIT,
    ) -> LookupTable[IdT]:
        table: LookupTable[IdT] = cls(kind=kind, threshold=threshold, limit=limit)
        for name, ident in pairs:
            if name is None or not name.strip():
                continue
            table.add(name, ident)
        return table

    def add(self, name: str, ident: IdT) -> None:
        key = lookup_key(name)
        self._ids.setdefault(key, set()).add(ident)
        self._names.setdefault(key, []).append(name.strip())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and lookup_key(name) in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def names(self) -> list[str]:
        """One display name per key, in insertion order."""
        return [names[0] for names in self._names.values()]

    def get(self, name: str) -> IdT | None:
        """The id for `name`, or `None` when missing or ambiguous."""
        ids = self._ids.get(lookup_key(name))
        if not ids or len(ids) > 1:
            return None
        return next(iter(ids))

    def suggestions(self, name: str) -> list[str]:
        return suggest(name, self.names(), threshold=self.threshold, limit=self.limit)

    def resolve(self, name: str) -> IdT:
        """
        Resolve `name` to its id.

        Raises `RowRejected(unresolved_reference)` when the name is unknown
        (with near-match suggestions) or ambiguous (with the conflicting names).
        """
        key = lookup_key(name)
        ids = self._ids.get(key)
        if ids is None:
            hints = self.suggestions(name)
            reason = f"{self.kind} not found: {name!r}"
            if hints:
                reason += f". Did you mean: {', '.join(hints)}?"
            raise RowRejected(ErrorCode.unresolved_reference, reason, suggestions=hints)

        if len(ids) > 1:
            conflicting = sorted(set(self._names[key]))
            raise RowRejected(
                ErrorCode.unresolved_reference,
                f"{self.kind} name is ambiguous: {name!r} matches {len(ids)} records ({', '.join(conflicting)})",
                suggestions=conflicting,
            )
        return next(iter(ids))
