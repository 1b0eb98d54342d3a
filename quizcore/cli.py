"""
quizcore: offline grading and quiz analytics.

Commands:
- quizcore score    - Grade a submission from JSON files
- quizcore stats    - Statistics over exported attempts
- quizcore items    - Item analysis (difficulty, discrimination)
- quizcore db init  - Create the quiz tables
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config import get_settings
from quizcore.errors import AssessmentError
from quizcore.attempts.utils import format_duration
from quizcore.logging_setup import configure_logging
from quizcore.models import Answer, Question, QuizAttempt
from quizcore.scoring.dispatcher import ScoringDispatcher
from quizcore.statistics import StatisticsCalculator


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="quizcore",
    help="Quiz scoring and analytics",
    no_args_is_help=True,
)
db_app = typer.Typer(help="Database management", no_args_is_help=True)
app.add_typer(db_app, name="db")

console = Console()


# =============================================================================
# Input Helpers
# =============================================================================


def _load_json(path: Path, key: str) -> list[dict[str, Any]]:
    """Read a JSON list, or an object holding the list under ``key``."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(1)
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        console.print(f"[red]{path} must contain a list of {key}[/red]")
        raise typer.Exit(1)
    return data


def _parse(model, items: list[dict[str, Any]], path: Path) -> list:
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as e:
        console.print(f"[red]Invalid data in {path}:[/red]\n{e}")
        raise typer.Exit(1)


def _points(value: float | None) -> str:
    return "[yellow]pending[/yellow]" if value is None else f"{value:g}"


# =============================================================================
# Commands
# =============================================================================


@app.command()
def score(
    questions_file: Path = typer.Argument(..., help="JSON list of question definitions"),
    answers_file: Path = typer.Argument(..., help="JSON list of answers"),
    passing_score: float = typer.Option(60.0, "--passing-score", "-p", help="Pass mark (percent)"),
    transcribe: bool = typer.Option(
        False,
        "--transcribe",
        help="Use the configured transcription service for audio answers",
    ),
) -> None:
    """Grade one submission and print per-question feedback."""
    questions = _parse(Question, _load_json(questions_file, "questions"), questions_file)
    answers = _parse(Answer, _load_json(answers_file, "answers"), answers_file)

    transcriber = None
    if transcribe:
        from quizcore.integrations import HttpAudioTranscriber

        settings = get_settings()
        transcriber = HttpAudioTranscriber(
            settings.transcription_service_url,
            timeout_ms=settings.http_timeout_ms,
            retry_attempts=settings.http_retry_attempts,
        )

    try:
        outcome = ScoringDispatcher(transcriber=transcriber).grade(questions, answers)
    except AssessmentError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)
    finally:
        if transcriber is not None:
            transcriber.close()

    table = Table(title="Submission")
    table.add_column("Question")
    table.add_column("Type", style="dim")
    table.add_column("Points", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Feedback")

    types = {question.id: question.type for question in questions}
    for item in outcome.feedback:
        icon = "[green]✓[/green]" if item.correct else "[red]✗[/red]"
        table.add_row(
            f"{icon} {item.question_id}",
            types.get(item.question_id, ""),
            _points(item.points),
            f"{item.max_points:g}",
            escape(item.message),
        )
    console.print(table)

    verdict = "[green]PASSED[/green]" if outcome.score >= passing_score else "[red]FAILED[/red]"
    console.print(
        f"\n[bold]Score:[/bold] {outcome.points_earned:g}/{outcome.points_possible:g} "
        f"({outcome.score:.2f}%)  {verdict}"
    )
    if outcome.pending_review:
        console.print("[yellow]Some answers await manual or peer review.[/yellow]")


@app.command()
def stats(
    attempts_file: Path = typer.Argument(..., help="JSON list of quiz attempts"),
    passing_score: Optional[float] = typer.Option(
        None,
        "--passing-score", "-p",
        help="Recompute pass/fail with this mark instead of each attempt's flag",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the statistics as JSON"),
) -> None:
    """Show aggregate statistics for a set of attempts."""
    attempts = _parse(QuizAttempt, _load_json(attempts_file, "attempts"), attempts_file)
    result = StatisticsCalculator().compute_statistics(attempts, passing_score=passing_score)
    if as_json:
        console.print_json(data=result.to_dict())
        return

    console.print("\n[bold cyan]Quiz Statistics[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Finished attempts", str(result.total_attempts))
    table.add_row("Graded", str(result.completions))
    table.add_row("Average score", f"{result.average_score:.2f}%")
    table.add_row("Median score", f"{result.median_score:.2f}%")
    table.add_row("Std deviation", f"{result.score_std_dev:.2f}")
    table.add_row("Pass rate", f"{result.pass_rate:.1f}%")
    table.add_row("Average time", format_duration(result.average_time))
    console.print(table)

    distribution = Table(title="Score distribution")
    distribution.add_column("Range")
    distribution.add_column("Attempts", justify="right")
    for label, count in result.score_distribution.items():
        distribution.add_row(label, str(count))
    console.print(distribution)


@app.command()
def items(
    attempts_file: Path = typer.Argument(..., help="JSON list of quiz attempts"),
    questions_file: Path = typer.Argument(..., help="JSON list of question definitions"),
    as_json: bool = typer.Option(False, "--json", help="Print the analysis as JSON"),
) -> None:
    """Per-question difficulty and discrimination."""
    attempts = _parse(QuizAttempt, _load_json(attempts_file, "attempts"), attempts_file)
    questions = _parse(Question, _load_json(questions_file, "questions"), questions_file)
    analysis = StatisticsCalculator(get_settings().discrimination_group_fraction).item_analysis(
        attempts, questions
    )
    if as_json:
        console.print_json(data=[item.to_dict() for item in analysis])
        return

    table = Table(title="Item analysis")
    table.add_column("Question")
    table.add_column("Responses", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Difficulty")
    table.add_column("Discrimination", justify="right")

    for item in analysis:
        table.add_row(
            item.question_id,
            str(item.responses),
            f"{item.correct_rate:.0%}",
            item.difficulty,
            f"{item.discrimination:+.2f}",
        )
    console.print(table)
    if analysis and analysis[0].advisory:
        console.print("[yellow]Fewer than 2 attempts: treat these numbers as advisory.[/yellow]")


@db_app.command("init")
def db_init() -> None:
    """Create quizzes, quiz_questions and quiz_attempts tables."""
    from quizcore.db import init_db

    init_db()
    console.print("[green]Database tables initialized[/green]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)
    app()


if __name__ == "__main__":
    main()
