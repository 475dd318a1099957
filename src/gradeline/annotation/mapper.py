"""Map a selection in a rendered view back to canonical text offsets.

Any rendering technology can take part by implementing ``TextView``: it only
has to say how many canonical characters precede a point in its output.
Two views are provided:

- ``SegmentView``: fragments produced by ``renderer.render`` (one per
  segment), the way a retained-mode UI tree lays them out.
- ``TextBufferView``: a terminal-style buffer addressed by line and column.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from gradeline.annotation.renderer import fragments
from gradeline.models.annotation import TextRange

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gradeline.annotation.renderer import Segment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionPoint:
    """A position inside a view: a node (fragment or line) and an offset in it."""

    node: int
    offset: int


@dataclass(frozen=True)
class Selection:
    """A user selection. ``focus`` may come before ``anchor``."""

    anchor: SelectionPoint
    focus: SelectionPoint

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus


class TextView(Protocol):
    """A rendered view of the canonical text that can locate selection points."""

    def offset_of(self, point: SelectionPoint) -> int | None:
        """Number of canonical characters before *point*, or None if outside."""
        ...

    def text_between(self, start: int, end: int) -> str:
        """Canonical text between two offsets."""
        ...


class _FragmentView:
    """Shared prefix-length bookkeeping over an ordered list of fragments."""

    def __init__(self, parts: Sequence[str]) -> None:
        self._parts = list(parts)
        self._starts = [0, *itertools.accumulate(len(p) for p in self._parts)]
        self._text = "".join(self._parts)

    def offset_of(self, point: SelectionPoint) -> int | None:
        if not 0 <= point.node < len(self._parts):
            return None
        if not 0 <= point.offset <= len(self._parts[point.node]):
            return None
        return self._starts[point.node] + point.offset

    def text_between(self, start: int, end: int) -> str:
        return self._text[start:end]


class SegmentView(_FragmentView):
    """View over renderer output; node ``i`` is the ``i``-th segment."""

    def __init__(self, segments: Sequence[Segment]) -> None:
        super().__init__(fragments(segments))


class TextBufferView(_FragmentView):
    """Line/column view of the text; line breaks belong to the line they end.

    Only ``"\\n"`` starts a new line, matching ``group_paragraphs``.
    """

    def __init__(self, text: str) -> None:
        *lines, last = text.split("\n")
        super().__init__([f"{line}\n" for line in lines] + [last])


def map_selection(view: TextView, selection: Selection | None) -> TextRange | None:
    """Convert a selection into a range of the canonical text.

    Surrounding whitespace is trimmed and the range covers exactly the
    trimmed text.

    Returns:
        The range, or None when there is no selection, it is collapsed or
        whitespace-only, or either end lies outside the view.
    """
    if selection is None or selection.is_collapsed:
        return None

    anchor = view.offset_of(selection.anchor)
    focus = view.offset_of(selection.focus)
    if anchor is None or focus is None:
        logger.debug("Selection outside tracked view: %s", selection)
        return None

    start, end = sorted((anchor, focus))
    selected = view.text_between(start, end)
    trimmed = selected.strip()
    if not trimmed:
        return None

    start += len(selected) - len(selected.lstrip())
    return TextRange(start, start + len(trimmed))
