"""Partition canonical text into plain and highlighted segments for display.

``render`` walks the annotations in display order with a single cursor.
Where annotations overlap, the earliest-starting (then earliest-created)
one owns the shared characters; a later annotation only highlights the
part of its range beyond the cursor.

Worked example, text ``"The quick brown fox"``::

    A = [4, 15)  "quick brown"
    B = [10, 19) "own fox"

    -> text "The ", highlight(A) "quick brown", highlight(B) " fox"

Joining the ``value`` of every segment always reproduces the text.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from gradeline.annotation.store import sort_annotations

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from gradeline.models.annotation import Annotation


class SegmentKind(StrEnum):
    TEXT = "text"
    HIGHLIGHT = "highlight"


@dataclass(frozen=True)
class Segment:
    """A contiguous run of canonical text.

    Attributes:
        kind: Plain text or highlight.
        value: The characters ``text[start:end]``.
        start: Offset of the first character in the canonical text.
        end: Offset one past the last character.
        annotation: The owning annotation (highlights only).
        is_active: Whether the owning annotation is the selected one.
    """

    kind: SegmentKind
    value: str
    start: int
    end: int
    annotation: Annotation | None = None
    is_active: bool = False

    @property
    def is_highlight(self) -> bool:
        return self.kind is SegmentKind.HIGHLIGHT


def _text_segment(text: str, start: int, end: int) -> Segment:
    return Segment(SegmentKind.TEXT, text[start:end], start, end)


def render(
    text: str,
    annotations: Iterable[Annotation],
    active_id: str | None = None,
) -> list[Segment]:
    """Split *text* into an ordered list of text and highlight segments.

    Args:
        text: The canonical text.
        annotations: Annotations with ranges valid for *text*, in any order.
        active_id: Local id of the selected annotation, if any.

    Returns:
        Segments in text order. Empty segments are never emitted, so an
        annotation entirely covered by an earlier one produces no segment.
    """
    segments: list[Segment] = []
    cursor = 0

    for annotation in sort_annotations(annotations):
        if annotation.start_offset > cursor:
            segments.append(_text_segment(text, cursor, annotation.start_offset))

        start = max(cursor, annotation.start_offset)
        if annotation.end_offset > start:
            segments.append(
                Segment(
                    SegmentKind.HIGHLIGHT,
                    text[start : annotation.end_offset],
                    start,
                    annotation.end_offset,
                    annotation=annotation,
                    is_active=annotation.id == active_id,
                )
            )
        cursor = max(cursor, annotation.end_offset)

    if cursor < len(text):
        segments.append(_text_segment(text, cursor, len(text)))

    return segments


def group_paragraphs(segments: Sequence[Segment]) -> list[list[Segment]]:
    """Group segments into paragraphs at line breaks in plain text.

    Text segments are cut at each ``"\\n"``; the pieces keep their canonical
    offsets and the newline characters themselves are dropped. A highlight
    is never split, even if it spans a line break. Paragraphs with no pieces
    (consecutive line breaks) are not emitted.
    """
    paragraphs: list[list[Segment]] = []
    current: list[Segment] = []

    for segment in segments:
        if segment.is_highlight:
            current.append(segment)
            continue

        offset = segment.start
        for index, line in enumerate(segment.value.split("\n")):
            if index > 0:
                # A line break closes the paragraph in progress
                if current:
                    paragraphs.append(current)
                current = []
                offset += 1
            if line:
                current.append(
                    replace(segment, value=line, start=offset, end=offset + len(line))
                )
            offset += len(line)

    if current:
        paragraphs.append(current)
    return paragraphs


def fragments(segments: Sequence[Segment]) -> list[str]:
    """The text of each segment, as a view would lay it out."""
    return [segment.value for segment in segments]
