"""Review session: one canonical text, its annotations, and its grades.

The session is what a hosting view talks to. It wires the selection mapper,
the annotation store and the segment renderer together, tracks the active
annotation, and talks to the review backend.

Every backend call captures the text version before awaiting. If a new
submission is loaded while the call is outstanding, the response is dropped
instead of being applied to offsets it was never computed against.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gradeline.annotation.errors import AnnotationNotFoundError, StaleResponseError
from gradeline.annotation.mapper import SegmentView, map_selection
from gradeline.annotation.palette import PaletteAssigner
from gradeline.annotation.renderer import group_paragraphs, render
from gradeline.annotation.store import AnnotationStore
from gradeline.backend.models import ReviewPayload
from gradeline.config import get_settings
from gradeline.models.annotation import Provenance
from gradeline.models.grading import GradeSheet

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from gradeline.annotation.mapper import Selection, TextView
    from gradeline.annotation.renderer import Segment
    from gradeline.backend.models import AiCheckResult, SubmissionPayload
    from gradeline.backend.protocol import ReviewBackendProtocol
    from gradeline.config import AnnotationConfig
    from gradeline.models.annotation import Annotation, TextRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestToken:
    """State captured when an async request was issued.

    Attributes:
        version: Text version.
        revision: Annotation store revision.
    """

    version: int
    revision: int = 0


class ReviewSession:
    """Hosts the review of a single submission text.

    Attributes:
        author: Display name used for comments added by the reviewer.
        submission_id: Backend id of the loaded submission, if any.
        status: Review status of the loaded submission (``pending``/``graded``).
        grades: Rubric scores and overall feedback.
        ai_check: AI-content detection result, if one is known.
        pending_range: Range of the current selection awaiting a comment.
    """

    def __init__(
        self,
        text: str = "",
        *,
        author: str | None = None,
        config: AnnotationConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        config = config or get_settings().annotation
        palette = PaletteAssigner(config.palette, config.palette_seed)
        self._store = AnnotationStore(text, palette=palette, clock=clock)
        self._ai_author = config.ai_author
        self._versions = itertools.count(1)
        self._version = next(self._versions)
        self._active_id: str | None = None

        self.author = author or config.default_author
        self.submission_id: str | None = None
        self.status = "pending"
        self.grades = GradeSheet.from_default_rubric()
        self.ai_check: AiCheckResult | None = None
        self.pending_range: TextRange | None = None

    # --- State ---

    @property
    def text(self) -> str:
        return self._store.text

    @property
    def version(self) -> int:
        return self._version

    @property
    def store(self) -> AnnotationStore:
        return self._store

    @property
    def active_id(self) -> str | None:
        return self._active_id

    def set_active(self, annotation_id: str | None) -> None:
        """Select an annotation; unknown ids clear the selection."""
        if annotation_id is not None and annotation_id not in self._store:
            logger.debug("Ignoring activation of unknown annotation %s", annotation_id)
            annotation_id = None
        self._active_id = annotation_id

    def load_text(self, text: str) -> None:
        """Replace the canonical text. All annotations are discarded."""
        self._version = next(self._versions)
        self._store.reset(text)
        self._active_id = None
        self.pending_range = None
        self.ai_check = None

    def load_submission(self, submission: SubmissionPayload) -> None:
        """Show a submission fetched from the backend."""
        self.load_text(submission.content)
        self.submission_id = submission.durable_id
        self.status = submission.status
        self._store.replace_all(submission.annotation_candidates())
        self.grades = submission.grade_sheet()
        self.ai_check = submission.ai_checker_results

    # --- Staleness ---

    def capture(self) -> RequestToken:
        return RequestToken(self._version, self._store.revision)

    def is_current(self, token: RequestToken) -> bool:
        return token.version == self._version

    def ensure_current(self, token: RequestToken) -> None:
        """Raise StaleResponseError if the text changed since *token*."""
        if not self.is_current(token):
            raise StaleResponseError(token.version, self._version)

    # --- Rendering and selection ---

    def segments(self) -> list[Segment]:
        return render(self.text, self._store.all(), self._active_id)

    def paragraphs(self) -> list[list[Segment]]:
        return group_paragraphs(self.segments())

    def view(self) -> SegmentView:
        """Selection view matching the current ``segments()`` layout."""
        return SegmentView(self.segments())

    def select(
        self, selection: Selection | None, view: TextView | None = None
    ) -> TextRange | None:
        """Record a user selection as the pending comment range.

        Args:
            selection: The selection, in *view* coordinates.
            view: The view the selection was made in. Defaults to ``view()``.
        """
        self.pending_range = map_selection(view or self.view(), selection)
        if self.pending_range is not None:
            self._active_id = None
        return self.pending_range

    def selected_text(self) -> str:
        if self.pending_range is None:
            return ""
        return self.text[self.pending_range.start : self.pending_range.end]

    # --- Comments ---

    def add_comment(
        self,
        body: str,
        text_range: TextRange | None = None,
        author: str | None = None,
    ) -> Annotation | None:
        """Attach a comment to *text_range*, or to the pending selection.

        Returns:
            The new annotation, or None when the body is blank or there is
            no range to attach it to.

        Raises:
            InvalidRangeError: If the range does not fit the text.
        """
        if text_range is None:
            text_range = self.pending_range
        if not body.strip() or text_range is None:
            return None
        annotation = self._store.add(text_range, body, author or self.author)
        self.pending_range = None
        self._active_id = annotation.id
        return annotation

    def update_comment(self, annotation_id: str, body: str) -> Annotation | None:
        """Edit a comment's body. Unknown ids are a no-op returning None."""
        try:
            return self._store.update(annotation_id, body)
        except AnnotationNotFoundError:
            logger.info("Comment %s no longer exists, edit ignored", annotation_id)
            return None

    def remove_comment(self, annotation_id: str) -> bool:
        removed = self._store.remove(annotation_id)
        if removed and self._active_id == annotation_id:
            self._active_id = None
        return removed

    # --- Backend ---

    async def suggest_comment(
        self, backend: ReviewBackendProtocol, text_range: TextRange | None = None
    ) -> str | None:
        """Ask the AI collaborator for a comment on a range of the text.

        Returns:
            The suggestion, or None when nothing is selected or the text
            changed while waiting.
        """
        if text_range is None:
            text_range = self.pending_range
        if text_range is None:
            return None
        token = self.capture()
        suggestion = await backend.suggest_comment(
            self.text[text_range.start : text_range.end]
        )
        try:
            self.ensure_current(token)
        except StaleResponseError as e:
            logger.info("Discarding comment suggestion: %s", e)
            return None
        return suggestion

    async def analyze(self, backend: ReviewBackendProtocol) -> list[Annotation]:
        """Run whole-submission AI analysis and add its suggested comments.

        Suggested overall feedback only fills feedback fields that are still
        empty.

        Returns:
            The annotations that were added. Empty if the response was stale.
        """
        token = self.capture()
        result = await backend.analyze_submission(self.submission_id, self.text)
        try:
            self.ensure_current(token)
        except StaleResponseError as e:
            logger.info("Discarding AI analysis: %s", e)
            return []

        added = self._store.add_many(
            [s.to_candidate(self.text) for s in result.suggested_inline_comments],
            provenance=Provenance.AI_SUGGESTED,
            author=self._ai_author,
        )
        if result.suggested_overall_feedback is not None:
            self.grades.apply_suggested_feedback(
                result.suggested_overall_feedback.to_feedback()
            )
        if self.ai_check is None:
            self.ai_check = result.ai_check_results
        logger.info("AI analysis added %d suggested comments", len(added))
        return added

    def review_payload(self) -> ReviewPayload:
        """Save request for the current state.

        The review is sent as graded once a score has been set, or if the
        submission was already graded; otherwise its status is kept.
        """
        status = self.status
        if self.grades.scored:
            status = "graded"
        return ReviewPayload.build(
            self.text, self._store.all(), self.grades, status=status
        )

    async def save(self, backend: ReviewBackendProtocol) -> bool:
        """Save the review and adopt the backend's copy of the comments.

        Local ids are reassigned. The active comment is found again by its
        range and body; if that matches several comments, the active
        selection is cleared. Comments changed while the request was in
        flight are kept as they are instead of being overwritten.

        Returns:
            True if the saved state was applied, False if it was stale or
            the comments changed in the meantime.

        Raises:
            ValueError: If no submission is loaded.
            BackendError: If the API rejects the save.
        """
        if self.submission_id is None:
            raise ValueError("No submission loaded")

        token = self.capture()
        saved = await backend.save_review(self.submission_id, self.review_payload())
        try:
            self.ensure_current(token)
        except StaleResponseError as e:
            logger.info("Discarding save response: %s", e)
            return False

        self.status = saved.status
        if self._store.revision != token.revision:
            logger.info("Comments changed during save, keeping local copy")
            return False

        active = self._store.get(self._active_id) if self._active_id else None
        self._store.replace_all(
            [c.to_candidate(self.text) for c in saved.inline_comments or []]
        )
        self.grades = saved.grade_sheet()
        self._active_id = self._resolve(active)
        return True

    def _resolve(self, annotation: Annotation | None) -> str | None:
        if annotation is None:
            return None
        matches = self._store.find_by_content(*annotation.content_key())
        if len(matches) == 1:
            return matches[0].id
        if matches:
            logger.warning(
                "Active comment matches %d saved comments, clearing selection",
                len(matches),
            )
        return None
