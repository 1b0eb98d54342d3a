"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate scoring deeply - the unit tests do that.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent

QUESTIONS = [
    {
        "id": "q1",
        "type": "multiple-choice",
        "content": {"options": ["A", "B", "C"], "correct_answer": "B"},
    },
    {
        "id": "q2",
        "type": "fill-blank",
        "content": {"correct_answer": "Paris"},
        "scoring": {"points": 2},
    },
]


def run_cli_command(*args: str, env: dict | None = None, timeout: int = 60) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m quizcore.cli'
        env: Extra environment variables
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    result = subprocess.run(
        [sys.executable, "-m", "quizcore.cli", *args],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
        env={**os.environ, "COLUMNS": "200", **(env or {})},
    )

    return result.returncode, result.stdout, result.stderr


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "quizcore" in stdout.lower()
        assert "score" in stdout
        assert "stats" in stdout

    @pytest.mark.parametrize("command", ["score", "stats", "items"])
    def test_command_help(self, command):
        code, stdout, stderr = run_cli_command(command, "--help")

        assert code == 0, f"{command} help failed: {stderr}"


class TestCLIScore:
    """Test score command."""

    def test_passing_submission(self, tmp_path):
        questions = write_json(tmp_path / "questions.json", QUESTIONS)
        answers = write_json(
            tmp_path / "answers.json",
            {"answers": [
                {"question_id": "q1", "response": "B"},
                {"question_id": "q2", "response": "paris"},
            ]},
        )

        code, stdout, stderr = run_cli_command("score", str(questions), str(answers))

        assert code == 0, f"Score failed: {stderr}"
        assert "3/3" in stdout
        assert "PASSED" in stdout

    def test_failing_submission(self, tmp_path):
        questions = write_json(tmp_path / "questions.json", QUESTIONS)
        answers = write_json(tmp_path / "answers.json", [{"question_id": "q1", "response": "B"}])

        code, stdout, stderr = run_cli_command("score", str(questions), str(answers), "-p", "50")

        assert code == 0, f"Score failed: {stderr}"
        assert "1/3" in stdout
        assert "FAILED" in stdout

    def test_unsupported_type(self, tmp_path):
        questions = write_json(
            tmp_path / "questions.json",
            [{"id": "q1", "type": "crossword", "content": {}}],
        )
        answers = write_json(tmp_path / "answers.json", [])

        code, stdout, stderr = run_cli_command("score", str(questions), str(answers))

        assert code == 1
        assert "Unsupported question type" in stdout

    def test_missing_file(self, tmp_path):
        code, stdout, stderr = run_cli_command(
            "score", str(tmp_path / "nope.json"), str(tmp_path / "nope.json")
        )

        assert code == 1
        assert "Cannot read" in stdout


def _attempt(attempt_id, score, q1_correct):
    return {
        "id": attempt_id,
        "quiz_id": "quiz-1",
        "user_id": f"user-{attempt_id}",
        "start_time": "2026-03-02T09:00:00Z",
        "end_time": "2026-03-02T09:10:00Z",
        "time_limit": 30,
        "status": "graded",
        "score": score,
        "passed": score >= 60,
        "feedback": [{"question_id": "q1", "correct": q1_correct, "points": 1, "max_points": 1}],
    }


class TestCLIAnalytics:
    """Test stats and items commands."""

    def test_stats(self, tmp_path):
        attempts = write_json(
            tmp_path / "attempts.json",
            [_attempt("a1", 90, True), _attempt("a2", 40, False)],
        )

        code, stdout, stderr = run_cli_command("stats", str(attempts))

        assert code == 0, f"Stats failed: {stderr}"
        assert "Quiz Statistics" in stdout
        assert "65.00%" in stdout
        assert "81-100" in stdout

    def test_stats_json(self, tmp_path):
        attempts = write_json(
            tmp_path / "attempts.json",
            [_attempt("a1", 90, True), _attempt("a2", 40, False)],
        )

        code, stdout, stderr = run_cli_command("stats", str(attempts), "--json")

        assert code == 0, f"Stats failed: {stderr}"
        data = json.loads(stdout)
        assert data["total_attempts"] == 2
        assert data["average_score"] == 65
        assert data["pass_rate"] == 50

    def test_items(self, tmp_path):
        attempts = write_json(
            tmp_path / "attempts.json",
            {"attempts": [_attempt("a1", 90, True), _attempt("a2", 40, False)]},
        )
        questions = write_json(tmp_path / "questions.json", QUESTIONS)

        code, stdout, stderr = run_cli_command("items", str(attempts), str(questions))

        assert code == 0, f"Items failed: {stderr}"
        assert "q1" in stdout
        assert "+1.00" in stdout


class TestCLIDatabase:
    """Test db init against a throwaway SQLite file."""

    def test_db_init(self, tmp_path):
        db_file = tmp_path / "quizcore.db"

        code, stdout, stderr = run_cli_command(
            "db", "init",
            env={"QUIZCORE_DATABASE_URL": f"sqlite:///{db_file}"},
        )

        assert code == 0, f"db init failed: {stderr}"
        assert "initialized" in stdout
        assert db_file.exists()
