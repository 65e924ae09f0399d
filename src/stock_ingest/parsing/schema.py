from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from .primitives import normalize_cell
from .types import ErrorCode, NormalizedRecord, ParseError, RowOutcome

# Typing:
# Getter pulls a field's raw value out of the canonicalized row.
# Parser turns a non-empty raw value into its typed value.
Getter = Callable[[Mapping[str, Any]], Any]
Parser = Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Any given field's configurable expectations."""
    out_name: str               # internally mapped name of this field.
    getter: Getter              # how to fetch this field's value.
    parser: Parser              # how to parse this field's value.
    required: bool = True       # whether or not this field's value must exist.
    default: Any = None         # value used when an optional field is blank.


@dataclass(frozen=True, slots=True)
class RowParser:
    """
    Parse a single row of fields.

    Either:
    - return the successfully parsed row as a `NormalizedRecord`,
    - or a failure `RowOutcome`.

    Rejection order is always in:
    - 1st: first `missing_field`, in `fields` order
    - 2nd: first type/format error, in `fields` order
    """
    fields: Sequence[FieldSpec]             # every field in this row in a `[]` to pull from.

    def parse(self, canon: Mapping[str, Any], *, source_row: int, raw_payload: Mapping[str, Any]) -> NormalizedRecord | RowOutcome:
        """
        Normalize then parse a canonicalized row.
        Returns a `NormalizedRecord`, or a failure `RowOutcome` (upon any early return).
        """
        normalized = {k: normalize_cell(v) for k, v in canon.items()}

        # 1st rejection reason: required field is blank. Report all of them at once.
        missing = [f.out_name for f in self.fields if f.required and normalize_cell(f.getter(normalized)) is None]
        if missing:
            noun = "is" if len(missing) == 1 else "are"
            return RowOutcome.failure(
                source_row=source_row,
                original_data=raw_payload,
                code=ErrorCode.missing_field,
                reason=f"{', '.join(missing)} {noun} required",
            )

        ## -- Parsing loop
        out: dict[str, Any] = {}
        for f in self.fields:
            raw_v = normalize_cell(f.getter(normalized))
            if raw_v is None:
                # optional, this field's value is genuinely blank.
                out[f.out_name] = f.default
                continue
            try:
                out[f.out_name] = f.parser(raw_v)
            # 2nd rejection reason: typing / formatting error.
            except ParseError as e:
                return RowOutcome.failure(
                    source_row=source_row,
                    original_data=raw_payload,
                    code=e.code,
                    reason=e.detail,
                )

        return NormalizedRecord(values=out, source_row=source_row, raw_payload=raw_payload)
