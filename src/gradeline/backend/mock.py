"""Mock review backend for testing and offline use.

Keeps submissions in memory and mimics the API's behaviour of assigning
``_id`` values to newly saved comments.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING

from gradeline.backend.errors import BackendError
from gradeline.backend.models import (
    AnalysisResult,
    InlineCommentPayload,
    SubmissionPayload,
    SuggestedComment,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gradeline.backend.models import ReviewPayload

# Predefined sample so the CLI has something to show in mock mode
MOCK_SUBMISSION_ID = "mock-submission-1"
MOCK_SUBMISSION_CONTENT = (
    "The industrial revolution changed how people worked.\n"
    "Factories replaced workshops, and cities grew quickly around them."
)


class MockReviewBackend:
    """In-memory implementation of ReviewBackendProtocol.

    Attributes:
        calls: ``(method, argument)`` pairs in the order they were made.
    """

    def __init__(
        self,
        submissions: Iterable[SubmissionPayload] | None = None,
        *,
        suggestions: Iterable[SuggestedComment] = (),
    ) -> None:
        if submissions is None:
            submissions = [
                SubmissionPayload(
                    durable_id=MOCK_SUBMISSION_ID,
                    content=MOCK_SUBMISSION_CONTENT,
                    student_name="Sample Student",
                    assignment_title="Sample Essay",
                )
            ]
        self._submissions = {s.durable_id: s for s in submissions if s.durable_id}
        self._suggestions = list(suggestions)
        self._ids = itertools.count(1)
        self.calls: list[tuple[str, object]] = []

    async def fetch_submission(self, submission_id: str) -> SubmissionPayload:
        self.calls.append(("fetch_submission", submission_id))
        submission = self._submissions.get(submission_id)
        if submission is None:
            raise BackendError(404, "Submission not found")
        return submission.model_copy(deep=True)

    async def save_review(
        self, submission_id: str, review: ReviewPayload
    ) -> SubmissionPayload:
        self.calls.append(("save_review", submission_id))
        submission = self._submissions.get(submission_id)
        if submission is None:
            raise BackendError(404, "Submission not found")

        comments = [
            InlineCommentPayload.model_validate(
                {**c.to_wire(), "_id": c.durable_id or f"mock-comment-{next(self._ids)}"}
            )
            for c in review.inline_comments
        ]
        update = {
            "status": review.status,
            "sub_scores": review.sub_scores,
            "overall_feedback": review.overall_feedback,
            "inline_comments": comments,
        }
        if review.score is not None:
            update["score"] = review.score
        saved = submission.model_copy(update=update, deep=True)
        self._submissions[submission_id] = saved
        return saved.model_copy(deep=True)

    async def suggest_comment(self, text: str) -> str:
        self.calls.append(("suggest_comment", text))
        return f"Consider expanding on: {text.strip()[:60]}"

    async def analyze_submission(
        self, submission_id: str | None, content: str
    ) -> AnalysisResult:
        self.calls.append(("analyze_submission", submission_id))
        return AnalysisResult(suggested_inline_comments=list(self._suggestions))
