"""Data models for inline annotations on submission text.

Plain frozen dataclasses. Offsets are Python string indices into the
canonical submission text; conversion to the backend's UTF-16 offsets
happens in ``gradeline.backend.models``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class Provenance(StrEnum):
    """Where an annotation came from."""

    HUMAN = "human"
    AI_SUGGESTED = "ai-suggested"


@dataclass(frozen=True)
class TextRange:
    """Half-open character range ``[start, end)`` into the canonical text."""

    start: int
    end: int

    def is_valid_for(self, text_length: int) -> bool:
        """Whether this range is a non-empty sub-range of a text of that length."""
        return 0 <= self.start < self.end <= text_length


@dataclass(frozen=True)
class Annotation:
    """A comment anchored to a character range of the canonical text.

    Attributes:
        id: Local identifier, unique within one store and never reused.
        start_offset: Starting character index (inclusive).
        end_offset: Ending character index (exclusive).
        body: The comment content. The only field that changes after creation.
        author: Display name of the reviewer, or the AI collaborator label.
        created_at: When the annotation was created (UTC).
        provenance: Human or AI-suggested.
        display_color: Highlight colour assigned at creation.
        durable_id: Identifier assigned by the backend, if saved.
    """

    id: str
    start_offset: int
    end_offset: int
    body: str
    author: str
    created_at: datetime
    provenance: Provenance = Provenance.HUMAN
    display_color: str = ""
    durable_id: str | None = None

    @property
    def range(self) -> TextRange:
        return TextRange(self.start_offset, self.end_offset)

    @property
    def is_ai_suggested(self) -> bool:
        return self.provenance is Provenance.AI_SUGGESTED

    def content_key(self) -> tuple[int, int, str]:
        """Identity used to re-find an annotation after ids are reassigned."""
        return (self.start_offset, self.end_offset, self.body)


@dataclass(frozen=True)
class AnnotationCandidate:
    """An annotation proposed for bulk insertion (e.g. an AI suggestion).

    ``created_at`` and ``durable_id`` are only set when the candidate comes
    back from the backend.
    """

    start: int
    end: int
    body: str
    author: str | None = None
    created_at: datetime | None = None
    provenance: Provenance | None = None
    durable_id: str | None = None

    @property
    def range(self) -> TextRange:
        return TextRange(self.start, self.end)
