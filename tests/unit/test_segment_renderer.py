"""Tests for splitting canonical text into text and highlight segments."""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta

import pytest

from gradeline.annotation import SegmentKind, group_paragraphs, render
from tests.unit.conftest import CJK_TEXT, EMOJI_TEXT, FOX_TEXT

T0 = datetime(2026, 1, 1, tzinfo=UTC)


def _shape(segments):
    """(kind, value, owning id) for each segment."""
    return [
        (s.kind.value, s.value, s.annotation.id if s.annotation else None)
        for s in segments
    ]


class TestRender:
    """Core segment walk."""

    def test_no_annotations_is_single_text_segment(self) -> None:
        segments = render(FOX_TEXT, [])

        assert _shape(segments) == [("text", FOX_TEXT, None)]

    def test_empty_text_renders_nothing(self) -> None:
        assert render("", []) == []

    def test_single_highlight_in_middle(self, make_annotation) -> None:
        a = make_annotation(4, 9, id="a")

        segments = render(FOX_TEXT, [a])

        assert _shape(segments) == [
            ("text", "The ", None),
            ("highlight", "quick", "a"),
            ("text", " brown fox", None),
        ]
        assert segments[1].start == 4
        assert segments[1].end == 9

    def test_highlight_covering_whole_text(self, make_annotation) -> None:
        a = make_annotation(0, len(FOX_TEXT), id="a")

        assert _shape(render(FOX_TEXT, [a])) == [("highlight", FOX_TEXT, "a")]

    def test_adjacent_highlights_have_no_gap(self, make_annotation) -> None:
        a = make_annotation(0, 3, id="a")
        b = make_annotation(3, 9, id="b")

        assert _shape(render(FOX_TEXT, [b, a])) == [
            ("highlight", "The", "a"),
            ("highlight", " quick", "b"),
            ("text", " brown fox", None),
        ]

    def test_overlap_clips_later_annotation(self, make_annotation) -> None:
        """Earlier annotation owns the overlap; the later one shows its tail."""
        a = make_annotation(4, 15, id="A", created_at=T0)
        b = make_annotation(10, 19, id="B", created_at=T0 + timedelta(seconds=1))

        segments = render(FOX_TEXT, [b, a])

        assert _shape(segments) == [
            ("text", "The ", None),
            ("highlight", "quick brown", "A"),
            ("highlight", " fox", "B"),
        ]
        assert (segments[2].start, segments[2].end) == (15, 19)

    def test_same_start_earlier_created_wins(self, make_annotation) -> None:
        older = make_annotation(4, 9, id="older", created_at=T0)
        newer = make_annotation(4, 15, id="newer", created_at=T0 + timedelta(1))

        assert _shape(render(FOX_TEXT, [newer, older])) == [
            ("text", "The ", None),
            ("highlight", "quick", "older"),
            ("highlight", " brown", "newer"),
            ("text", " fox", None),
        ]

    def test_fully_covered_annotation_emits_no_segment(self, make_annotation) -> None:
        outer = make_annotation(4, 15, id="outer", created_at=T0)
        inner = make_annotation(10, 12, id="inner", created_at=T0 + timedelta(1))

        segments = render(FOX_TEXT, [outer, inner])

        assert [s.annotation.id for s in segments if s.annotation] == ["outer"]
        assert "".join(s.value for s in segments) == FOX_TEXT

    def test_active_flag_set_only_for_active_id(self, make_annotation) -> None:
        a = make_annotation(0, 3, id="a")
        b = make_annotation(4, 9, id="b")

        segments = render(FOX_TEXT, [a, b], active_id="b")

        active = {s.annotation.id: s.is_active for s in segments if s.annotation}
        assert active == {"a": False, "b": True}

    def test_render_does_not_mutate_input(self, make_annotation) -> None:
        annotations = [make_annotation(10, 15, id="b"), make_annotation(0, 3, id="a")]

        render(FOX_TEXT, annotations)

        assert [a.id for a in annotations] == ["b", "a"]


class TestRenderProperties:
    """Round-trip and determinism over generated annotation sets."""

    @pytest.mark.parametrize("text", [FOX_TEXT, EMOJI_TEXT, CJK_TEXT, "a\nb\n\nc"])
    @pytest.mark.parametrize("seed", range(5))
    def test_round_trip_reproduces_text(self, make_annotation, text, seed) -> None:
        rng = random.Random(seed)
        annotations = []
        for i in range(rng.randint(0, 6)):
            start = rng.randrange(0, len(text))
            end = rng.randint(start + 1, len(text))
            annotations.append(
                make_annotation(
                    start, end, id=f"h{i}", created_at=T0 + timedelta(seconds=i)
                )
            )

        segments = render(text, annotations)

        assert "".join(s.value for s in segments) == text
        assert all(s.value for s in segments)
        assert all(text[s.start : s.end] == s.value for s in segments)

    def test_render_is_idempotent(self, make_annotation) -> None:
        annotations = [
            make_annotation(4, 15, id="A", created_at=T0),
            make_annotation(10, 19, id="B", created_at=T0 + timedelta(1)),
        ]

        first = render(FOX_TEXT, annotations, active_id="A")
        second = render(FOX_TEXT, annotations, active_id="A")

        assert first == second


class TestGroupParagraphs:
    """Paragraph grouping at line breaks."""

    def test_splits_text_on_newlines(self) -> None:
        text = "First line\nSecond line"

        paragraphs = group_paragraphs(render(text, []))

        assert [[p.value for p in para] for para in paragraphs] == [
            ["First line"],
            ["Second line"],
        ]

    def test_pieces_keep_canonical_offsets(self) -> None:
        text = "One\nTwo"

        (first,), (second,) = group_paragraphs(render(text, []))

        assert (first.start, first.end) == (0, 3)
        assert (second.start, second.end) == (4, 7)
        assert text[second.start : second.end] == "Two"

    def test_consecutive_newlines_emit_no_empty_paragraph(self) -> None:
        paragraphs = group_paragraphs(render("A\n\n\nB", []))

        assert [[p.value for p in para] for para in paragraphs] == [["A"], ["B"]]

    def test_highlight_stays_in_its_paragraph(self, make_annotation) -> None:
        text = "Intro text\nThe body here"
        a = make_annotation(15, 19, id="a")

        paragraphs = group_paragraphs(render(text, [a]))

        assert len(paragraphs) == 2
        assert [(p.kind, p.value) for p in paragraphs[1]] == [
            (SegmentKind.TEXT, "The "),
            (SegmentKind.HIGHLIGHT, "body"),
            (SegmentKind.TEXT, " here"),
        ]

    def test_highlight_spanning_newline_is_not_split(self, make_annotation) -> None:
        text = "end of one\nstart of two"
        a = make_annotation(7, 16, id="a")

        paragraphs = group_paragraphs(render(text, [a]))

        highlights = [p for para in paragraphs for p in para if p.is_highlight]
        assert [h.value for h in highlights] == ["one\nstart"]
