"""Data models for annotations and grading."""

from gradeline.models.annotation import (
    Annotation,
    AnnotationCandidate,
    Provenance,
    TextRange,
)
from gradeline.models.grading import (
    DEFAULT_RUBRIC,
    GradeSheet,
    OverallFeedback,
    SubScore,
    clamp_score,
)

__all__ = [
    "DEFAULT_RUBRIC",
    "Annotation",
    "AnnotationCandidate",
    "GradeSheet",
    "OverallFeedback",
    "Provenance",
    "SubScore",
    "TextRange",
    "clamp_score",
]
