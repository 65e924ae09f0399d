from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence
from uuid import UUID

from stock_ingest.parsing.types import RowOutcome

DEFAULT_ERROR_DISPLAY_LIMIT = 10


@dataclass(frozen=True)
class UploadResult:
    """
    Aggregate of one upload: every row's outcome plus the counts derived from them.

    `success_count + error_count == total` always holds, and `outcomes` is
    in ascending `source_row` order.
    """
    upload_type: str
    outcomes: Sequence[RowOutcome]
    dry_run: bool = False
    run_id: UUID | None = None
    input_path: str = ""
    errors: list[RowOutcome] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcomes", tuple(self.outcomes))
        object.__setattr__(self, "errors", [o for o in self.outcomes if not o.ok])

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def success_count(self) -> int:
        return self.total - self.error_count

    def displayed_errors(self, limit: int = DEFAULT_ERROR_DISPLAY_LIMIT) -> list[RowOutcome]:
        """The first `limit` failures, in row order."""
        return self.errors[:limit]

    def hidden_error_count(self, limit: int = DEFAULT_ERROR_DISPLAY_LIMIT) -> int:
        return max(0, self.error_count - limit)

    def render_errors(self, limit: int = DEFAULT_ERROR_DISPLAY_LIMIT) -> list[str]:
        """One line per displayed failure, then `... and N more errors` when capped."""
        lines = [
            f"Row {o.source_row}: [{o.code.value if o.code else 'error'}] {o.reason}"
            for o in self.displayed_errors(limit)
        ]
        hidden = self.hidden_error_count(limit)
        if hidden:
            lines.append(f"... and {hidden} more errors")
        return lines

    def render_one_line(self) -> str:
        """How the summary is formatted for the terminal."""
        line = (
            f"{self.upload_type}: total={self.total} "
            f"succeeded={self.success_count} failed={self.error_count}"
        )
        if self.dry_run:
            line += " (dry run)"
        if self.run_id is not None:
            line += f" run_id={self.run_id}"
        return line
