"""Command-line review tool.

Renders a submission with its inline comments in the terminal, and drives
the review workflow (comment, AI analysis, grading, save) against the submissions API.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gradeline import __version__, _setup_logging
from gradeline.annotation import (
    ReviewSession,
    Selection,
    SelectionPoint,
    TextBufferView,
)
from gradeline.backend import BackendError, SubmissionPayload, get_review_backend
from gradeline.config import get_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gradeline.backend import AiCheckResult, ReviewBackendProtocol

console = Console()


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def render_document(session: ReviewSession) -> Text:
    """Lay out the submission text with highlighted comment ranges.

    Each highlight is followed by a ``[n]`` marker matching the comment table.
    """
    numbers = {a.id: n for n, a in enumerate(session.store.all(), start=1)}
    document = Text()

    for index, paragraph in enumerate(session.paragraphs()):
        if index:
            document.append("\n\n")
        for piece in paragraph:
            if piece.annotation is None:
                document.append(piece.value)
                continue
            style = f"on {piece.annotation.display_color}"
            if piece.is_active:
                style += " bold underline"
            document.append(piece.value, style=style)
            document.append(f"[{numbers[piece.annotation.id]}]", style="dim")

    if not document.plain:
        document.append("Submission content seems empty.", style="italic dim")
    return document


def comments_table(session: ReviewSession) -> Table:
    table = Table(title="Comments", show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Range")
    table.add_column("Author")
    table.add_column("Comment")

    for n, annotation in enumerate(session.store.all(), start=1):
        marker = "*" if annotation.id == session.active_id else ""
        author = annotation.author
        if annotation.is_ai_suggested:
            author += " (AI)"
        table.add_row(
            f"{marker}{n}",
            f"{annotation.start_offset}-{annotation.end_offset}",
            Text(author),
            Text(annotation.body),
        )
    return table


def grades_table(session: ReviewSession) -> Table:
    grades = session.grades
    table = Table(title=f"Score: {grades.final_score}%")
    table.add_column("Criterion")
    table.add_column("Score", justify="right")
    table.add_column("Rationale")
    for sub_score in grades.sub_scores:
        table.add_row(
            sub_score.name,
            f"{sub_score.score:g}/{sub_score.max_score:g}",
            Text(sub_score.rationale),
        )
    return table


def ai_check_table(check: AiCheckResult) -> Table:
    confidence = escape(check.confidence or "n/a")
    table = Table(title=f"AI content check (confidence: {confidence})")
    table.add_column("Section")
    table.add_column("Human", justify="right")
    table.add_row("Overall", f"{check.score:g}%", style="bold")
    for detail in check.details:
        human = round(detail.human_probability * 100)
        table.add_row(Text(detail.section), f"{human}%")
    return table


def show_session(session: ReviewSession, title: str = "Submission") -> None:
    console.print(Panel(render_document(session), title=title))
    if len(session.store):
        console.print(comments_table(session))
    console.print(grades_table(session))
    if session.ai_check is not None:
        console.print(ai_check_table(session.ai_check))

    feedback = session.grades.feedback
    if not feedback.is_empty():
        body = Text()
        for label, value in (
            ("Strengths", feedback.strengths),
            ("Improvements", feedback.improvements),
            ("Action items", feedback.action_items),
        ):
            if value:
                body.append(f"{label}: ", style="bold")
                body.append(f"{value}\n")
        console.print(Panel(body, title="Overall feedback"))


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------
def parse_point(value: str) -> SelectionPoint:
    """Parse ``LINE:COL`` (both 1-based) into a text buffer selection point."""
    try:
        line, column = (int(part) for part in value.split(":", 1))
    except ValueError as e:
        msg = f"expected LINE:COL, got {value!r}"
        raise argparse.ArgumentTypeError(msg) from e
    return SelectionPoint(node=line - 1, offset=column - 1)


def parse_criterion(value: str) -> tuple[int, str]:
    """Parse ``N=VALUE`` where N is the 1-based rubric criterion number."""
    number, sep, rest = value.partition("=")
    if not sep or not number.strip().isdigit() or int(number) < 1:
        msg = f"expected N=VALUE with N a criterion number, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return int(number) - 1, rest


def load_submission_file(path: Path) -> SubmissionPayload:
    return SubmissionPayload.model_validate(json.loads(path.read_text("utf-8")))


def _title(submission: SubmissionPayload) -> str:
    parts = [p for p in (submission.assignment_title, submission.student_name) if p]
    return " - ".join(parts) or "Submission"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gradeline",
        description="Review and annotate student submissions.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # render
    render_p = sub.add_parser("render", help="Render a submission JSON file")
    render_p.add_argument("path", type=Path, help="Submission JSON file")
    render_p.add_argument(
        "--active", type=int, default=None, help="Comment number to mark active"
    )

    # fetch
    fetch_p = sub.add_parser("fetch", help="Fetch and render a submission")
    fetch_p.add_argument("submission_id", help="Submission id")

    # comment
    comment_p = sub.add_parser("comment", help="Add an inline comment and save")
    comment_p.add_argument("submission_id", help="Submission id")
    comment_p.add_argument(
        "--from", dest="start", type=parse_point, required=True, help="LINE:COL"
    )
    comment_p.add_argument(
        "--to", dest="end", type=parse_point, required=True, help="LINE:COL"
    )
    body = comment_p.add_mutually_exclusive_group(required=True)
    body.add_argument("--body", help="Comment text")
    body.add_argument(
        "--suggest", action="store_true", help="Use the AI-suggested comment"
    )
    comment_p.add_argument("--author", default=None, help="Comment author")

    # grade
    grade_p = sub.add_parser("grade", help="Score rubric criteria and save")
    grade_p.add_argument("submission_id", help="Submission id")
    grade_p.add_argument(
        "--score",
        dest="scores",
        type=parse_criterion,
        action="append",
        required=True,
        metavar="N=SCORE",
        help="Score for criterion N (repeatable)",
    )
    grade_p.add_argument(
        "--rationale",
        dest="rationales",
        type=parse_criterion,
        action="append",
        default=[],
        metavar="N=TEXT",
        help="Rationale for criterion N (repeatable)",
    )
    grade_p.add_argument("--strengths", default=None)
    grade_p.add_argument("--improvements", default=None)
    grade_p.add_argument("--action-items", default=None)

    # analyze
    analyze_p = sub.add_parser("analyze", help="Add AI-suggested comments")
    analyze_p.add_argument("submission_id", help="Submission id")
    analyze_p.add_argument(
        "--save", action="store_true", help="Save the review afterwards"
    )

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def _new_session(author: str | None = None) -> ReviewSession:
    return ReviewSession(author=author, config=get_settings().annotation)


async def _fetch(backend: ReviewBackendProtocol, args: argparse.Namespace) -> int:
    submission = await backend.fetch_submission(args.submission_id)
    session = _new_session()
    session.load_submission(submission)
    show_session(session, _title(submission))
    return 0


async def _comment(backend: ReviewBackendProtocol, args: argparse.Namespace) -> int:
    submission = await backend.fetch_submission(args.submission_id)
    session = _new_session(args.author)
    session.load_submission(submission)

    selection = Selection(anchor=args.start, focus=args.end)
    if session.select(selection, TextBufferView(session.text)) is None:
        console.print("[red]Selection is empty or outside the submission text[/]")
        return 2

    if args.suggest:
        body = await session.suggest_comment(backend)
        console.print(f"[cyan]AI suggestion:[/] {escape(body or '')}")
    else:
        body = args.body
    if not body or session.add_comment(body) is None:
        console.print("[red]Comment text is empty[/]")
        return 2

    await session.save(backend)
    show_session(session, _title(submission))
    return 0


async def _analyze(backend: ReviewBackendProtocol, args: argparse.Namespace) -> int:
    submission = await backend.fetch_submission(args.submission_id)
    session = _new_session()
    session.load_submission(submission)

    added = await session.analyze(backend)
    console.print(f"[green]AI analysis added {len(added)} comments[/]")
    if args.save:
        await session.save(backend)
        console.print("[green]Review saved[/]")
    show_session(session, _title(submission))
    return 0


async def _grade(backend: ReviewBackendProtocol, args: argparse.Namespace) -> int:
    submission = await backend.fetch_submission(args.submission_id)
    session = _new_session()
    session.load_submission(submission)

    grades = session.grades
    count = len(grades.sub_scores)
    for index, _ in [*args.scores, *args.rationales]:
        if index >= count:
            console.print(f"[red]No criterion {index + 1}; the rubric has {count}[/]")
            return 2

    for index, value in args.scores:
        grades.set_score(index, value)
    for index, rationale in args.rationales:
        grades.set_rationale(index, rationale)
    feedback = {
        "strengths": args.strengths,
        "improvements": args.improvements,
        "action_items": args.action_items,
    }
    updates = {name: value for name, value in feedback.items() if value is not None}
    if updates:
        grades.feedback = replace(grades.feedback, **updates)

    await session.save(backend)
    console.print(f"[green]Review saved ({session.status})[/]")
    show_session(session, _title(submission))
    return 0


_BACKEND_COMMANDS = {
    "fetch": _fetch,
    "comment": _comment,
    "analyze": _analyze,
    "grade": _grade,
}


async def _run_backend_command(args: argparse.Namespace) -> int:
    backend = get_review_backend()
    try:
        return await _BACKEND_COMMANDS[args.command](backend, args)
    finally:
        aclose = getattr(backend, "aclose", None)
        if aclose is not None:
            await aclose()


def _render(args: argparse.Namespace) -> int:
    submission = load_submission_file(args.path)
    session = _new_session()
    session.load_submission(submission)
    if args.active is not None:
        annotations = session.store.all()
        if 1 <= args.active <= len(annotations):
            session.set_active(annotations[args.active - 1].id)
    show_session(session, _title(submission))
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the ``gradeline`` command."""
    args = _build_parser().parse_args(argv)
    _setup_logging(get_settings().app.log_dir)

    try:
        if args.command == "render":
            code = _render(args)
        else:
            code = asyncio.run(_run_backend_command(args))
    except BackendError as e:
        console.print(f"[red]API error:[/] {escape(e.message)}")
        if e.is_auth_error:
            console.print("Check API__TOKEN; the API refused the request.")
        code = 1
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
