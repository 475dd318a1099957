"""Tests for the gradeline command-line tool."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

import pytest

from gradeline.annotation import SelectionPoint
from gradeline.backend import get_review_backend
from gradeline.backend.mock import MOCK_SUBMISSION_ID
from gradeline.backend.models import AiCheckDetail, AiCheckResult
from gradeline.cli import (
    ai_check_table,
    console,
    load_submission_file,
    main,
    parse_criterion,
    parse_point,
    render_document,
)
from gradeline.models import TextRange

FIXTURE = Path(__file__).parent.parent / "fixtures" / "submission.json"


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Log into a temp dir and use the in-memory backend."""
    monkeypatch.setenv("APP__LOG_DIR", str(tmp_path))
    monkeypatch.setenv("DEV__BACKEND_MOCK", "true")
    return tmp_path


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestParsePoint:
    def test_one_based_to_zero_based(self) -> None:
        assert parse_point("2:5") == SelectionPoint(node=1, offset=4)

    @pytest.mark.parametrize("value", ["", "3", "a:b", "1:2:3"])
    def test_malformed_raises(self, value: str) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="LINE:COL"):
            parse_point(value)


class TestParseCriterion:
    def test_one_based_to_zero_based(self) -> None:
        assert parse_criterion("2=18.5") == (1, "18.5")

    def test_value_may_contain_equals(self) -> None:
        assert parse_criterion("1=a=b") == (0, "a=b")

    @pytest.mark.parametrize("value", ["", "3", "0=5", "x=5", "-1=5"])
    def test_malformed_raises(self, value: str) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="N=VALUE"):
            parse_criterion(value)


class TestAiCheckTable:
    def test_overall_and_section_rows(self, capsys) -> None:
        check = AiCheckResult(
            score=82,
            confidence="high",
            details=[
                AiCheckDetail(section="Introduction", human_probability=0.9),
                AiCheckDetail(section="Conclusion", human_probability=0.66),
            ],
        )

        console.print(ai_check_table(check))

        out = capsys.readouterr().out
        assert "confidence: high" in out
        assert "82%" in out
        assert "Introduction" in out
        assert "90%" in out
        assert "66%" in out


class TestRenderDocument:
    def test_highlights_followed_by_markers(self, make_session) -> None:
        session = make_session()
        session.add_comment("One", TextRange(4, 9))
        session.add_comment("Two", TextRange(16, 19))

        document = render_document(session)

        assert document.plain == "The quick[1] brown fox[2]"

    def test_active_highlight_is_emphasised(self, make_session) -> None:
        session = make_session()
        session.add_comment("One", TextRange(4, 9))

        document = render_document(session)

        styles = [str(span.style) for span in document.spans]
        assert any("bold underline" in style for style in styles)

    def test_paragraphs_separated_by_blank_line(self, make_session) -> None:
        session = make_session("First\nSecond")

        assert render_document(session).plain == "First\n\nSecond"

    def test_empty_submission_placeholder(self, make_session) -> None:
        assert "seems empty" in render_document(make_session("")).plain


class TestLoadSubmissionFile:
    def test_fixture_parses(self) -> None:
        submission = load_submission_file(FIXTURE)

        assert submission.student_name == "Jordan Patel"
        assert len(submission.inline_comments) == 2
        assert submission.grade_sheet().final_score == 74


class TestMain:
    def test_render_fixture(self, cli_env, capsys) -> None:
        code = _run(["render", str(FIXTURE), "--active", "1"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Define the period you mean." in out
        assert "Score: 74%" in out

    def test_missing_file_exits_with_error(self, cli_env, capsys) -> None:
        code = _run(["render", str(cli_env / "missing.json")])

        assert code == 1
        assert "Error" in capsys.readouterr().out

    def test_fetch_unknown_submission(self, cli_env, capsys) -> None:
        code = _run(["fetch", "does-not-exist"])

        assert code == 1
        assert "Submission not found" in capsys.readouterr().out

    def test_comment_saves_to_backend(self, cli_env, capsys) -> None:
        code = _run(
            [
                "comment",
                "mock-submission-1",
                "--from",
                "1:5",
                "--to",
                "1:15",
                "--body",
                "Which one?",
            ]
        )

        out = capsys.readouterr().out
        assert code == 0
        assert "Which one?" in out

    def test_comment_with_empty_selection(self, cli_env, capsys) -> None:
        code = _run(
            [
                "comment",
                "mock-submission-1",
                "--from",
                "1:4",
                "--to",
                "1:5",
                "--body",
                "x",
            ]
        )

        assert code == 2
        assert "Selection is empty" in capsys.readouterr().out

    def test_analyze_without_suggestions(self, cli_env, capsys) -> None:
        code = _run(["analyze", "mock-submission-1"])

        assert code == 0
        assert "AI analysis added 0 comments" in capsys.readouterr().out

    def test_missing_token_reported(self, cli_env, monkeypatch, capsys) -> None:
        monkeypatch.delenv("DEV__BACKEND_MOCK")

        code = _run(["fetch", "abc"])

        assert code == 1
        assert "API__TOKEN" in capsys.readouterr().out

    def test_comment_keeps_submission_pending(self, cli_env, capsys) -> None:
        _run(
            [
                "comment",
                MOCK_SUBMISSION_ID,
                "--from",
                "1:5",
                "--to",
                "1:15",
                "--body",
                "Which one?",
            ]
        )

        stored = asyncio.run(get_review_backend().fetch_submission(MOCK_SUBMISSION_ID))
        assert stored.status == "pending"
        assert stored.score is None
        assert len(stored.inline_comments) == 1

    def test_grade_saves_score(self, cli_env, capsys) -> None:
        code = _run(
            [
                "grade",
                MOCK_SUBMISSION_ID,
                "--score",
                "1=30",
                "--score",
                "4=20",
                "--rationale",
                "1=Strong grasp",
                "--strengths",
                "Clear thesis",
            ]
        )

        out = capsys.readouterr().out
        assert code == 0
        assert "Review saved (graded)" in out
        assert "Score: 50%" in out
        stored = asyncio.run(get_review_backend().fetch_submission(MOCK_SUBMISSION_ID))
        assert stored.status == "graded"
        assert stored.score == 50
        assert stored.sub_scores[0].rationale == "Strong grasp"
        assert stored.overall_feedback.strengths == "Clear thesis"

    def test_grade_unknown_criterion(self, cli_env, capsys) -> None:
        code = _run(["grade", MOCK_SUBMISSION_ID, "--score", "5=10"])

        assert code == 2
        assert "No criterion 5" in capsys.readouterr().out
        stored = asyncio.run(get_review_backend().fetch_submission(MOCK_SUBMISSION_ID))
        assert stored.status == "pending"
