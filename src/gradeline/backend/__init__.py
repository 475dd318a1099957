"""Submissions API access for review sessions.

Usage:
    from gradeline.backend import get_review_backend

    backend = get_review_backend()
    submission = await backend.fetch_submission("abc123")
"""

from __future__ import annotations

from gradeline.backend.errors import BackendError
from gradeline.backend.factory import clear_config_cache, get_review_backend
from gradeline.backend.models import (
    AiCheckResult,
    AnalysisResult,
    InlineCommentPayload,
    ReviewPayload,
    SubmissionPayload,
    SuggestedComment,
)
from gradeline.backend.protocol import ReviewBackendProtocol

__all__ = [
    "AiCheckResult",
    "AnalysisResult",
    "BackendError",
    "InlineCommentPayload",
    "ReviewBackendProtocol",
    "ReviewPayload",
    "SubmissionPayload",
    "SuggestedComment",
    "clear_config_cache",
    "get_review_backend",
]
