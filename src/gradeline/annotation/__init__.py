"""Inline annotation engine: selection mapping, storage, and rendering.

Usage:
    from gradeline.annotation import ReviewSession
    from gradeline.models import TextRange

    session = ReviewSession("Hello world")
    session.add_comment("Nice opening", TextRange(0, 5))
    for segment in session.segments():
        ...
"""

from gradeline.annotation.errors import (
    AnnotationError,
    AnnotationNotFoundError,
    InvalidRangeError,
    StaleResponseError,
)
from gradeline.annotation.mapper import (
    SegmentView,
    Selection,
    SelectionPoint,
    TextBufferView,
    TextView,
    map_selection,
)
from gradeline.annotation.palette import PaletteAssigner
from gradeline.annotation.renderer import (
    Segment,
    SegmentKind,
    group_paragraphs,
    render,
)
from gradeline.annotation.session import RequestToken, ReviewSession
from gradeline.annotation.store import AnnotationStore, sort_annotations

__all__ = [
    "AnnotationError",
    "AnnotationNotFoundError",
    "AnnotationStore",
    "InvalidRangeError",
    "PaletteAssigner",
    "RequestToken",
    "ReviewSession",
    "Segment",
    "SegmentKind",
    "SegmentView",
    "Selection",
    "SelectionPoint",
    "StaleResponseError",
    "TextBufferView",
    "TextView",
    "group_paragraphs",
    "map_selection",
    "render",
    "sort_annotations",
]
