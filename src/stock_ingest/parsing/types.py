from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Mapping


class ErrorCode(str, Enum):
    """Typed row rejection classifications."""
    missing_field = "missing_field"
    invalid_value = "invalid_value"                 # type and range errors
    invalid_enum = "invalid_enum"                   # UOM / usage type not recognized
    duplicate_key = "duplicate_key"                 # in-batch or in-store
    unresolved_reference = "unresolved_reference"   # category / supplier / item not found
    insufficient_stock = "insufficient_stock"
    write_failure = "write_failure"


@dataclass(frozen=True, slots=True)
class NormalizedRecord:
    """A row's typed values after normalization. Not yet validated against reference data."""
    values: dict[str, Any]
    source_row: int
    raw_payload: Mapping[str, Any]  # the raw unmutated row, kept for corrections/re-upload.


OutcomeStatus = Literal["success", "failure"]


@dataclass(frozen=True, slots=True)
class RowOutcome:
    """
    The one result every raw row produces.

    `code` and `reason` are only set for failures. `original_data` is the
    raw row as read from the file, for re-editing and re-upload.
    """
    source_row: int
    status: OutcomeStatus
    original_data: Mapping[str, Any]
    code: ErrorCode | None = None
    reason: str = ""
    suggestions: tuple[str, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, *, source_row: int, original_data: Mapping[str, Any]) -> RowOutcome:
        return cls(source_row=source_row, status="success", original_data=original_data)

    @classmethod
    def failure(
        cls,
        *,
        source_row: int,
        original_data: Mapping[str, Any],
        code: ErrorCode,
        reason: str,
        suggestions: tuple[str, ...] = (),
    ) -> RowOutcome:
        return cls(
            source_row=source_row,
            status="failure",
            original_data=original_data,
            code=code,
            reason=reason,
            suggestions=tuple(suggestions),
        )


@dataclass(eq=False)
class ParseError(Exception):
    """Handles rejected fields, with additional rejection details for the row's error message."""
    code: ErrorCode             # used to classify the rejection type encountered
    detail: str                 # human readable reason shown next to the row number.
    value: Any = None           # the offending original input, if any.

    def __str__(self) -> str:
        return self.detail


class RowRejected(Exception):
    """
    Raised by resolve/validate steps for a single row. The pipeline turns it into a failure `RowOutcome`.
    """

    def __init__(self, code: ErrorCode, reason: str, *, suggestions: tuple[str, ...] | list[str] = ()) -> None:
        super().__init__(reason)
        self.code = code
        self.reason = reason
        self.suggestions = tuple(suggestions)
