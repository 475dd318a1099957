"""Shared fixtures for unit tests."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from gradeline.annotation import AnnotationStore, PaletteAssigner, ReviewSession
from gradeline.models import Annotation, Provenance
from tests.conftest import TEST_PALETTE

# Text used across renderer, store and mapper tests
FOX_TEXT = "The quick brown fox"

# Characters outside the Basic Multilingual Plane take two UTF-16 units
EMOJI_TEXT = "Great 👍 work 🎉 overall"
CJK_TEXT = "学生的论文写得很好"


@pytest.fixture
def make_annotation():
    """Factory for Annotation instances (not stored)."""

    def _make(
        start: int,
        end: int,
        *,
        id: str | None = None,
        body: str = "comment",
        author: str = "Reviewer",
        created_at: datetime | None = None,
        provenance: Provenance = Provenance.HUMAN,
        **kwargs,
    ) -> Annotation:
        return Annotation(
            id=id or f"a-{start}-{end}",
            start_offset=start,
            end_offset=end,
            body=body,
            author=author,
            created_at=created_at or datetime(2026, 1, 1, tzinfo=UTC),
            provenance=provenance,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_store(clock):
    """Factory for AnnotationStore with a fixed palette and ticking clock."""

    def _make(text: str = FOX_TEXT) -> AnnotationStore:
        return AnnotationStore(text, palette=PaletteAssigner(TEST_PALETTE), clock=clock)

    return _make


@pytest.fixture
def make_session(clock, annotation_config):
    """Factory for ReviewSession with test configuration."""

    def _make(text: str = FOX_TEXT, author: str = "Ms Rivera") -> ReviewSession:
        return ReviewSession(text, author=author, config=annotation_config, clock=clock)

    return _make
