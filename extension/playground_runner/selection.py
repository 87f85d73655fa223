"""
Selection resolution for partial playground runs.

Pure functions over editor ranges. Multi-cursor selections arrive in click
order, so every consumer sorts them by start line first.

Invariants:
    - Resolved text joins range texts with "\\n" in ascending start-line order
    - The affordance is placed on the first selected line, column 0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .host import TextDocument


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line and character offset."""

    line: int
    character: int = 0


@dataclass(frozen=True)
class Range:
    """A span of document text between two positions."""

    start: Position
    end: Position

    @classmethod
    def of(cls, start_line: int, start_character: int, end_line: int, end_character: int) -> Range:
        return cls(Position(start_line, start_character), Position(end_line, end_character))

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


def sort_ranges(ranges: Sequence[Range]) -> Tuple[Range, ...]:
    """Order ranges by start line (stable for ranges on the same line)."""
    return tuple(sorted(ranges, key=lambda r: r.start.line))


@dataclass(frozen=True)
class SelectionSet:
    """The selections of a playground resolved against its document.

    Attributes:
        ranges: Selected ranges in ascending start-line order
        texts: Text of each range, parallel to ranges
    """

    ranges: Tuple[Range, ...]
    texts: Tuple[str, ...]

    @classmethod
    def from_document(cls, document: "TextDocument", ranges: Sequence[Range]) -> SelectionSet:
        ordered = sort_ranges(ranges)
        return cls(ranges=ordered, texts=tuple(document.get_text(r) for r in ordered))

    @property
    def text(self) -> str:
        """Candidate partial-run text."""
        return "\n".join(self.texts)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to run as a selection."""
        return not self.ranges or (len(self.ranges) == 1 and self.texts[0] == "")

    @property
    def is_partial(self) -> bool:
        return not self.is_empty


def affordance_line(document: "TextDocument", selection: SelectionSet) -> Optional[int]:
    """Line at which to show the "run selected lines" affordance.

    The last selected range must reach the end of the meaningful content on
    the line where it ends. This tells a finished statement selection apart
    from a drag in progress.

    Returns:
        The first selected range's start line, or None to clear the affordance
    """
    if not selection.ranges:
        return None

    last = selection.ranges[-1]
    selected_text = selection.texts[-1].strip()
    last_selected_line = document.line_at(last.end.line).strip()

    if selected_text and len(selected_text) >= len(last_selected_line):
        return selection.ranges[0].start.line
    return None
