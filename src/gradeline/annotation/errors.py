"""Exceptions raised by the annotation engine.

None of these are fatal: callers decide whether to surface them.
"""

from __future__ import annotations


class AnnotationError(Exception):
    """Base class for annotation engine errors."""


class InvalidRangeError(AnnotationError, ValueError):
    """A range is empty, reversed, or outside the canonical text."""

    def __init__(self, start: int, end: int, text_length: int) -> None:
        self.start = start
        self.end = end
        self.text_length = text_length
        super().__init__(
            f"Invalid range [{start}, {end}) for text of length {text_length}"
        )


class AnnotationNotFoundError(AnnotationError, LookupError):
    """No annotation with the given local id exists in the store."""

    def __init__(self, annotation_id: str) -> None:
        self.annotation_id = annotation_id
        super().__init__(f"Annotation not found: {annotation_id}")


class StaleResponseError(AnnotationError):
    """An async response was issued against a text that has since been replaced."""

    def __init__(self, request_version: int, current_version: int) -> None:
        self.request_version = request_version
        self.current_version = current_version
        super().__init__(
            f"Response for text version {request_version} arrived after "
            f"version {current_version} was loaded"
        )
