"""Wire models for the submissions API and conversions to domain models.

Field names follow the API's JSON (camelCase, ``_id``). Comment offsets on
the wire are UTF-16 code units; the ``to_*`` / ``from_*`` helpers convert
them to and from Python string indices against the submission text.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from gradeline.backend.offsets import index_to_utf16, is_bmp_only, utf16_to_index
from gradeline.models.annotation import Annotation, AnnotationCandidate, Provenance
from gradeline.models.grading import GradeSheet, OverallFeedback, SubScore


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the API's field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _durable_id_field() -> Any:
    return Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ---------------------------------------------------------------------------
# Inline comments
# ---------------------------------------------------------------------------
class InlineCommentPayload(_WireModel):
    """An inline comment as stored by the API."""

    start_index: int = Field(alias="startIndex")
    end_index: int = Field(alias="endIndex")
    text: str = ""
    author: str = ""
    timestamp: datetime | None = None
    is_ai_generated: bool = Field(default=False, alias="isAIGenerated")
    durable_id: str | None = _durable_id_field()

    @classmethod
    def from_annotation(cls, annotation: Annotation, content: str) -> InlineCommentPayload:
        start, end = annotation.start_offset, annotation.end_offset
        if not is_bmp_only(content):
            start = index_to_utf16(content, start)
            end = index_to_utf16(content, end)
        return cls(
            start_index=start,
            end_index=end,
            text=annotation.body,
            author=annotation.author,
            timestamp=annotation.created_at,
            is_ai_generated=annotation.is_ai_suggested,
            durable_id=annotation.durable_id,
        )

    def to_candidate(self, content: str) -> AnnotationCandidate:
        start, end = self.start_index, self.end_index
        if not is_bmp_only(content):
            start = utf16_to_index(content, start)
            end = utf16_to_index(content, end)
        return AnnotationCandidate(
            start=start,
            end=end,
            body=self.text,
            author=self.author,
            created_at=_as_utc(self.timestamp),
            provenance=(
                Provenance.AI_SUGGESTED if self.is_ai_generated else Provenance.HUMAN
            ),
            durable_id=self.durable_id,
        )


class SuggestedComment(_WireModel):
    """One inline comment proposed by whole-submission AI analysis."""

    start_index: int = Field(alias="startIndex")
    end_index: int = Field(alias="endIndex")
    text: str = ""

    def to_candidate(self, content: str) -> AnnotationCandidate:
        start, end = self.start_index, self.end_index
        if not is_bmp_only(content):
            start = utf16_to_index(content, start)
            end = utf16_to_index(content, end)
        return AnnotationCandidate(start=start, end=end, body=self.text)


# ---------------------------------------------------------------------------
# Grading
# ---------------------------------------------------------------------------
class SubScorePayload(_WireModel):
    name: str
    score: float = 0
    max_score: float = Field(alias="maxScore")
    rationale: str = ""
    durable_id: str | None = _durable_id_field()

    @classmethod
    def from_sub_score(cls, sub_score: SubScore) -> SubScorePayload:
        # Sub-score ids are managed by the API; they are not sent back.
        return cls(
            name=sub_score.name,
            score=sub_score.score,
            max_score=sub_score.max_score,
            rationale=sub_score.rationale,
        )

    def to_sub_score(self) -> SubScore:
        return SubScore(
            name=self.name,
            max_score=self.max_score,
            score=self.score,
            rationale=self.rationale,
            durable_id=self.durable_id,
        )


class OverallFeedbackPayload(_WireModel):
    strengths: str = ""
    improvements: str = ""
    action_items: str = Field(default="", alias="actionItems")

    @classmethod
    def from_feedback(cls, feedback: OverallFeedback) -> OverallFeedbackPayload:
        return cls(
            strengths=feedback.strengths,
            improvements=feedback.improvements,
            action_items=feedback.action_items,
        )

    def to_feedback(self) -> OverallFeedback:
        return OverallFeedback(
            strengths=self.strengths,
            improvements=self.improvements,
            action_items=self.action_items,
        )


# ---------------------------------------------------------------------------
# AI content check
# ---------------------------------------------------------------------------
class AiCheckDetail(_WireModel):
    section: str = ""
    ai_probability: float = Field(default=0, alias="aiProbability")
    human_probability: float = Field(default=0, alias="humanProbability")


class AiCheckResult(_WireModel):
    """AI-content detection for a submission. ``score`` is the human score (%)."""

    score: float = 0
    confidence: str = ""
    details: list[AiCheckDetail] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------
class SubmissionPayload(_WireModel):
    """A student submission with its current review state."""

    durable_id: str | None = _durable_id_field()
    content: str = ""
    status: str = "pending"
    student_name: str = Field(default="", alias="studentName")
    assignment_title: str = Field(default="", alias="assignmentTitle")
    submission_date: str | None = Field(default=None, alias="submissionDate")
    score: float | None = None
    sub_scores: list[SubScorePayload] | None = Field(default=None, alias="subScores")
    overall_feedback: OverallFeedbackPayload | None = Field(
        default=None, alias="overallFeedback"
    )
    inline_comments: list[InlineCommentPayload] | None = Field(
        default=None, alias="inlineComments"
    )
    ai_checker_results: AiCheckResult | None = Field(
        default=None, alias="aiCheckerResults"
    )

    def annotation_candidates(self) -> list[AnnotationCandidate]:
        return [c.to_candidate(self.content) for c in self.inline_comments or []]

    def grade_sheet(self) -> GradeSheet:
        """Grades for this submission; the default rubric if none were saved."""
        if self.sub_scores:
            sheet = GradeSheet(sub_scores=[s.to_sub_score() for s in self.sub_scores])
        else:
            sheet = GradeSheet.from_default_rubric()
        if self.overall_feedback is not None:
            sheet.feedback = self.overall_feedback.to_feedback()
        return sheet


class ReviewPayload(_WireModel):
    """Body of a save request.

    The score is only sent when the review is saved as graded.
    """

    score: int | None = None
    sub_scores: list[SubScorePayload] = Field(alias="subScores")
    overall_feedback: OverallFeedbackPayload = Field(alias="overallFeedback")
    inline_comments: list[InlineCommentPayload] = Field(alias="inlineComments")
    status: str = "graded"

    @classmethod
    def build(
        cls,
        content: str,
        annotations: list[Annotation],
        grades: GradeSheet,
        status: str = "graded",
    ) -> ReviewPayload:
        return cls(
            score=grades.final_score if status == "graded" else None,
            sub_scores=[SubScorePayload.from_sub_score(s) for s in grades.sub_scores],
            overall_feedback=OverallFeedbackPayload.from_feedback(grades.feedback),
            inline_comments=[
                InlineCommentPayload.from_annotation(a, content) for a in annotations
            ],
            status=status,
        )


class AnalysisResult(_WireModel):
    """Response of whole-submission AI analysis."""

    suggested_inline_comments: list[SuggestedComment] = Field(
        default_factory=list, alias="suggestedInlineComments"
    )
    suggested_overall_feedback: OverallFeedbackPayload | None = Field(
        default=None, alias="suggestedOverallFeedback"
    )
    ai_check_results: AiCheckResult | None = Field(
        default=None, alias="aiCheckResults"
    )
