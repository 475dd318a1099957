"""Rubric scoring and overall feedback for a submission review."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

# Rubric used when a submission has not been scored yet
DEFAULT_RUBRIC: tuple[tuple[str, int], ...] = (
    ("Content/Understanding", 30),
    ("Organization/Structure", 25),
    ("Evidence/Support", 25),
    ("Clarity/Mechanics", 20),
)


@dataclass
class SubScore:
    """One rubric criterion and the score awarded against it."""

    name: str
    max_score: float
    score: float = 0
    rationale: str = ""
    durable_id: str | None = None


@dataclass
class OverallFeedback:
    """Free-text feedback shown alongside the score."""

    strengths: str = ""
    improvements: str = ""
    action_items: str = ""

    def is_empty(self) -> bool:
        return not (self.strengths or self.improvements or self.action_items)

    def merge_missing(self, suggested: OverallFeedback) -> OverallFeedback:
        """Fill only the fields the reviewer has left empty.

        Used when AI analysis proposes feedback: text the reviewer has
        already written is never overwritten.
        """
        return OverallFeedback(
            strengths=self.strengths or suggested.strengths,
            improvements=self.improvements or suggested.improvements,
            action_items=self.action_items or suggested.action_items,
        )


def clamp_score(value: float | str | None, max_score: float) -> float:
    """Coerce user input to a score within ``[0, max_score]``.

    Empty or non-numeric input counts as 0.
    """
    if value is None or value == "":
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    return max(0, min(number, max_score))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass
class GradeSheet:
    """Rubric sub-scores plus overall feedback for one submission.

    Attributes:
        sub_scores: One entry per rubric criterion.
        feedback: Free-text overall feedback.
        scored: Whether a score was set in this session.
    """

    sub_scores: list[SubScore] = field(default_factory=list)
    feedback: OverallFeedback = field(default_factory=OverallFeedback)
    scored: bool = False

    @classmethod
    def from_default_rubric(cls) -> GradeSheet:
        return cls(
            sub_scores=[
                SubScore(name=name, max_score=max_score)
                for name, max_score in DEFAULT_RUBRIC
            ]
        )

    @property
    def total(self) -> float:
        return sum(s.score or 0 for s in self.sub_scores)

    @property
    def max_total(self) -> float:
        return sum(s.max_score or 0 for s in self.sub_scores)

    @property
    def final_score(self) -> int:
        """Percentage score, rounded half up. 0 when the rubric is empty."""
        if self.max_total <= 0:
            return 0
        return _round_half_up(self.total / self.max_total * 100)

    def set_score(self, index: int, value: float | str | None) -> SubScore:
        """Set a criterion's score, clamped to its maximum.

        Raises:
            IndexError: If there is no criterion at ``index``.
        """
        current = self.sub_scores[index]
        updated = replace(current, score=clamp_score(value, current.max_score))
        self.sub_scores[index] = updated
        self.scored = True
        return updated

    def set_rationale(self, index: int, rationale: str) -> SubScore:
        current = self.sub_scores[index]
        updated = replace(current, rationale=rationale)
        self.sub_scores[index] = updated
        return updated

    def apply_suggested_feedback(self, suggested: OverallFeedback) -> None:
        self.feedback = self.feedback.merge_missing(suggested)
