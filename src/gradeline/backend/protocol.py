"""Protocol defining the review backend interface.

Both HttpReviewBackend and MockReviewBackend implement this protocol,
allowing them to be used interchangeably.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from gradeline.backend.models import (
        AnalysisResult,
        ReviewPayload,
        SubmissionPayload,
    )


class ReviewBackendProtocol(Protocol):
    """Persistence and AI endpoints used by a review session."""

    async def fetch_submission(self, submission_id: str) -> SubmissionPayload:
        """Load a submission with its saved review state.

        Raises:
            BackendError: If the API rejects the request.
        """
        ...

    async def save_review(
        self, submission_id: str, review: ReviewPayload
    ) -> SubmissionPayload:
        """Persist a review and return the submission as saved.

        The returned inline comments may carry newly assigned ``_id`` values.
        """
        ...

    async def suggest_comment(self, text: str) -> str:
        """Ask the AI collaborator for a comment on a selected passage."""
        ...

    async def analyze_submission(
        self, submission_id: str | None, content: str
    ) -> AnalysisResult:
        """Ask the AI collaborator to review the whole submission."""
        ...
