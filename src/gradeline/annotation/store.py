"""In-memory annotation store for a single canonical text.

Holds the inline comments of one review session. Every record is validated
against the current canonical text; replacing the text discards all
annotations, because their offsets no longer mean anything.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from gradeline.annotation.errors import AnnotationNotFoundError, InvalidRangeError
from gradeline.annotation.palette import PaletteAssigner
from gradeline.models.annotation import Annotation, Provenance

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from gradeline.models.annotation import AnnotationCandidate, TextRange

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def sort_annotations(annotations: Iterable[Annotation]) -> list[Annotation]:
    """Order annotations for display: by start offset, then creation time.

    The sort is stable, so exact ties keep their incoming order.
    """
    return sorted(annotations, key=lambda a: (a.start_offset, a.created_at))


class AnnotationStore:
    """Ordered collection of annotations keyed by local id.

    Local ids (``local-1``, ``local-2``, ...) come from a per-store counter
    and are never reused, even after removal or ``replace_all``. Ids assigned
    by the backend live separately in ``Annotation.durable_id``.
    """

    def __init__(
        self,
        text: str = "",
        *,
        palette: PaletteAssigner | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._text = text
        self._palette = palette or PaletteAssigner()
        self._clock = clock or _utc_now
        self._ids = itertools.count(1)
        self._annotations: dict[str, Annotation] = {}
        self._revision = 0

    @property
    def text(self) -> str:
        """The canonical text all offsets refer to."""
        return self._text

    @property
    def revision(self) -> int:
        """Counter bumped by every change to the collection."""
        return self._revision

    def __len__(self) -> int:
        return len(self._annotations)

    def __contains__(self, annotation_id: object) -> bool:
        return annotation_id in self._annotations

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self.all())

    def _next_id(self) -> str:
        return f"local-{next(self._ids)}"

    def _check_range(self, start: int, end: int) -> None:
        if not 0 <= start < end <= len(self._text):
            raise InvalidRangeError(start, end, len(self._text))

    # --- Queries ---

    def get(self, annotation_id: str) -> Annotation | None:
        """Get an annotation by local id, or None."""
        return self._annotations.get(annotation_id)

    def all(self) -> list[Annotation]:
        """All annotations sorted by start offset, then creation time."""
        return sort_annotations(self._annotations.values())

    def find_by_content(self, start: int, end: int, body: str) -> list[Annotation]:
        """Annotations whose range and body match exactly, in display order."""
        key = (start, end, body)
        return [a for a in self.all() if a.content_key() == key]

    # --- Mutations ---

    def add(
        self,
        text_range: TextRange,
        body: str,
        author: str,
        provenance: Provenance = Provenance.HUMAN,
    ) -> Annotation:
        """Add an annotation over ``text_range``.

        Raises:
            InvalidRangeError: If the range is empty, reversed, or extends
                past the canonical text. The store is left unchanged.
        """
        self._check_range(text_range.start, text_range.end)
        annotation = Annotation(
            id=self._next_id(),
            start_offset=text_range.start,
            end_offset=text_range.end,
            body=body,
            author=author,
            created_at=self._clock(),
            provenance=provenance,
            display_color=self._palette.next_color(),
        )
        self._annotations[annotation.id] = annotation
        self._revision += 1
        logger.debug(
            "Added annotation %s [%d, %d) by %s",
            annotation.id,
            annotation.start_offset,
            annotation.end_offset,
            author,
        )
        return annotation

    def add_many(
        self,
        candidates: Iterable[AnnotationCandidate],
        provenance: Provenance = Provenance.AI_SUGGESTED,
        author: str = "AI Assistant",
    ) -> list[Annotation]:
        """Add a batch of candidates, dropping the ones with invalid ranges.

        Suggestions are best-effort, so a bad candidate never fails the batch.
        The valid candidates are committed together once all have been built.

        Returns:
            The annotations that were added, in candidate order.
        """
        created: list[Annotation] = []
        dropped = 0
        for candidate in candidates:
            if not candidate.range.is_valid_for(len(self._text)):
                dropped += 1
                logger.debug(
                    "Dropping candidate with invalid range [%d, %d)",
                    candidate.start,
                    candidate.end,
                )
                continue
            created.append(
                Annotation(
                    id=self._next_id(),
                    start_offset=candidate.start,
                    end_offset=candidate.end,
                    body=candidate.body,
                    author=candidate.author or author,
                    created_at=self._clock(),
                    provenance=provenance,
                    display_color=self._palette.next_color(),
                )
            )

        self._annotations.update((a.id, a) for a in created)
        if created:
            self._revision += 1
        if dropped:
            logger.warning(
                "Dropped %d of %d suggested annotations with invalid ranges",
                dropped,
                dropped + len(created),
            )
        return created

    def update(self, annotation_id: str, body: str) -> Annotation:
        """Replace the body of an annotation. Offsets and author never change.

        Raises:
            AnnotationNotFoundError: If no annotation has this id.
        """
        current = self._annotations.get(annotation_id)
        if current is None:
            raise AnnotationNotFoundError(annotation_id)
        updated = replace(current, body=body)
        self._annotations[annotation_id] = updated
        self._revision += 1
        return updated

    def remove(self, annotation_id: str) -> bool:
        """Remove an annotation.

        Returns:
            True if the annotation was found and removed.
        """
        if annotation_id in self._annotations:
            del self._annotations[annotation_id]
            self._revision += 1
            return True
        return False

    def replace_all(self, candidates: Iterable[AnnotationCandidate]) -> list[Annotation]:
        """Replace the whole collection, e.g. with the backend's saved copy.

        Every record receives a fresh local id; durable ids, offsets, bodies,
        authors and provenance are kept. Records that do not fit the current
        text are dropped.

        Returns:
            The new contents in display order.
        """
        replacement: dict[str, Annotation] = {}
        for candidate in candidates:
            if not candidate.range.is_valid_for(len(self._text)):
                logger.warning(
                    "Discarding saved annotation %s with invalid range [%d, %d)",
                    candidate.durable_id,
                    candidate.start,
                    candidate.end,
                )
                continue
            annotation = Annotation(
                id=self._next_id(),
                start_offset=candidate.start,
                end_offset=candidate.end,
                body=candidate.body,
                author=candidate.author or "",
                created_at=candidate.created_at or self._clock(),
                provenance=candidate.provenance or Provenance.HUMAN,
                display_color=self._palette.next_color(),
                durable_id=candidate.durable_id,
            )
            replacement[annotation.id] = annotation

        self._annotations = replacement
        self._revision += 1
        return self.all()

    def reset(self, text: str) -> None:
        """Switch to a new canonical text, discarding every annotation."""
        discarded = len(self._annotations)
        self._text = text
        self._annotations = {}
        self._palette.reset()
        self._revision += 1
        if discarded:
            logger.info("Discarded %d annotations for replaced text", discarded)
