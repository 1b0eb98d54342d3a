"""
Assessment data model.

Implements:
- Quiz: configuration entity (settings, schedule, prerequisites, rolling stats)
- Question: immutable question definition with type-specific content
- QuizAttempt: mutable aggregate root driven by the lifecycle manager

Question content structure by type:

    multiple-choice / true-false:
        {"options": ["A", "B", "C"], "correct_answer": "B"}
        (a list correct_answer means multi-select, compared as a set)

    matching / drag-drop:
        {"correct_answer": {"term-or-item": "definition-or-zone", ...}}

    fill-blank:
        {"correct_answer": "Paris"}                  single blank
        {"correct_answer": ["Paris", "paris, fr"]}   accepted alternatives
        {"blanks": [["TCP"], ["UDP", "user datagram protocol"]]}

    sequence:
        {"items": [...], "correct_answer": ["a", "b", "c"]}

    hotspot:
        {"media": [{"url": "...", "hotspots": [{"x": 10, "y": 10, "radius": 5}]}]}

    audio-response:
        {"correct_answer": "reference transcript"}

    math-equation:
        {"correct_answer": "x^2 - 1"}

    diagram-label:
        {"correct_answer": {"part-id": "label", ...}}

    case-study:
        {"scenario": "...", "sub_questions": [<Question>, ...]}

    peer-review / essay / coding:
        {"prompt": "..."}
"""
from __future__ import annotations

import copy
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Enums
# =============================================================================


class QuestionType(str, Enum):
    """Supported question types."""

    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    MATCHING = "matching"
    FILL_BLANK = "fill-blank"
    SEQUENCE = "sequence"
    HOTSPOT = "hotspot"
    DRAG_DROP = "drag-drop"
    AUDIO_RESPONSE = "audio-response"
    MATH_EQUATION = "math-equation"
    DIAGRAM_LABEL = "diagram-label"
    CASE_STUDY = "case-study"
    PEER_REVIEW = "peer-review"
    ESSAY = "essay"
    CODING = "coding"


class QuizStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class GradingType(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class AttemptStatus(str, Enum):
    """Lifecycle states of a quiz attempt."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"  # submitted, manual review pending
    GRADED = "graded"
    TIMED_OUT = "timed_out"


# Attempts that count against attempts_allowed and feed statistics
FINISHED_STATUSES: tuple[AttemptStatus, ...] = (AttemptStatus.COMPLETED, AttemptStatus.GRADED)

# Content keys that reveal the answer and never reach the learner snapshot
ANSWER_CONTENT_KEYS = frozenset(
    {"correct_answer", "correct_answers", "correct", "answer", "answers", "blanks", "hotspots"}
)


# =============================================================================
# Quiz configuration
# =============================================================================


class QuizSettings(BaseModel):
    time_limit: float = Field(default=30, ge=1, description="Minutes")
    attempts_allowed: int = Field(default=1, ge=1)
    passing_score: float = Field(default=60, ge=0, le=100)
    grading_type: GradingType = GradingType.AUTOMATIC
    shuffle_questions: bool = True
    show_results: bool = True
    show_feedback: bool = True


class LateSubmission(BaseModel):
    allowed: bool = False
    deadline: datetime | None = None
    penalty: float = Field(default=0, ge=0, le=100, description="Percentage deduction")


class Schedule(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None
    late_submission: LateSubmission = Field(default_factory=LateSubmission)

    @model_validator(mode="after")
    def _check_window(self) -> Schedule:
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        deadline = self.late_submission.deadline
        if deadline and self.end_date and deadline <= self.end_date:
            raise ValueError("Late submission deadline must be after end date")
        return self

    def late_window_open(self, now: datetime) -> bool:
        """True when now is past end_date but inside an allowed late window."""
        late = self.late_submission
        if not (self.end_date and late.allowed and late.deadline):
            return False
        return self.end_date < now <= late.deadline


class Prerequisite(BaseModel):
    type: str
    reference: str
    minimum_score: float = 0


class QuizStats(BaseModel):
    """Rolling aggregate written back onto the quiz after submissions."""

    attempts: int = 0
    completions: int = 0
    average_score: float = 0.0
    pass_rate: float = 0.0
    average_time: float = 0.0  # seconds


class Quiz(BaseModel):
    id: str
    title: str = ""
    settings: QuizSettings = Field(default_factory=QuizSettings)
    schedule: Schedule = Field(default_factory=Schedule)
    prerequisites: list[Prerequisite] = Field(default_factory=list)
    status: QuizStatus = QuizStatus.DRAFT
    stats: QuizStats = Field(default_factory=QuizStats)


# =============================================================================
# Questions
# =============================================================================


class RubricCriterion(BaseModel):
    model_config = ConfigDict(frozen=True)

    criterion: str
    weight: float = Field(default=1.0, ge=0)


class PeerReviewConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    min_reviewers: int = Field(default=1, ge=0)
    rubric: tuple[RubricCriterion, ...] = ()

    def weight_for(self, criterion: str) -> float:
        for item in self.rubric:
            if item.criterion == criterion:
                return item.weight
        return 1.0


class QuestionScoring(BaseModel):
    model_config = ConfigDict(frozen=True)

    points: float = Field(default=1.0, ge=0)
    partial_credit: bool = False
    tolerance: float | None = None
    peer_review: PeerReviewConfig | None = None


class Question(BaseModel):
    """
    Immutable question definition.

    ``content`` is type-specific (see module docstring). Definitions coming
    from the question bank carry the correct answers; the copies stored on an
    attempt are produced by ``redacted()``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    content: dict[str, Any] = Field(default_factory=dict)
    scoring: QuestionScoring = Field(default_factory=QuestionScoring)
    explanation: str | None = None

    @property
    def sub_questions(self) -> list[Question]:
        """Embedded sub-questions (case-study only)."""
        return [
            sq if isinstance(sq, Question) else Question.model_validate(sq)
            for sq in self.content.get("sub_questions", [])
        ]

    @property
    def max_points(self) -> float:
        if self.type == QuestionType.CASE_STUDY.value:
            return sum(sq.max_points for sq in self.sub_questions)
        return self.scoring.points

    def redacted(self) -> Question:
        """Deep copy with every answer-bearing field stripped."""
        content = _strip_answers(self.content)
        if "blanks" in self.content:
            content["blank_count"] = len(self.content["blanks"])
        if self.type == QuestionType.CASE_STUDY.value:
            content["sub_questions"] = [
                sq.redacted().model_dump(mode="json") for sq in self.sub_questions
            ]
        return Question(
            id=self.id,
            type=self.type,
            content=content,
            scoring=self.scoring.model_copy(deep=True),
            explanation=None,
        )


def _strip_answers(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: _strip_answers(item)
            for key, item in value.items()
            if key not in ANSWER_CONTENT_KEYS
        }
    if isinstance(value, list):
        return [_strip_answers(item) for item in value]
    return copy.deepcopy(value)


# =============================================================================
# Attempts
# =============================================================================


class PeerReview(BaseModel):
    reviewer_id: str
    scores: dict[str, float] = Field(default_factory=dict)  # criterion -> 0..1


class Answer(BaseModel):
    question_id: str
    response: Any = None
    time_spent: float | None = None  # seconds
    confidence: Literal["high", "medium", "low"] | None = None
    peer_reviews: list[PeerReview] = Field(default_factory=list)


class QuestionFeedback(BaseModel):
    question_id: str
    correct: bool = False
    points: float | None = 0.0  # None: ungraded, awaiting review
    max_points: float = 0.0
    message: str = ""
    explanation: str | None = None
    suggestions: list[str] = Field(default_factory=list)
    pending_review: bool = False


class QuizAttempt(BaseModel):
    id: str
    quiz_id: str
    user_id: str
    start_time: datetime
    end_time: datetime | None = None
    time_limit: float  # minutes, copied from the quiz at start
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    questions: list[Question] = Field(default_factory=list)
    answers: list[Answer] = Field(default_factory=list)
    score: float = 0.0  # percentage of points_possible
    points_earned: float = 0.0
    points_possible: float = 0.0
    passed: bool = False
    feedback: list[QuestionFeedback] = Field(default_factory=list)
    late_penalty: float = 0.0  # points deducted
    late_penalty_rate: float = 0.0  # percent applied at submission
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None

    @property
    def duration(self) -> timedelta | None:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    def elapsed_minutes(self, now: datetime) -> float:
        return (now - self.start_time).total_seconds() / 60

    def remaining_minutes(self, now: datetime) -> float:
        if self.status != AttemptStatus.IN_PROGRESS:
            return 0.0
        return max(0.0, self.time_limit - self.elapsed_minutes(now))

    def is_time_expired(self, now: datetime) -> bool:
        return self.elapsed_minutes(now) > self.time_limit

    def feedback_for(self, question_id: str) -> QuestionFeedback | None:
        for item in self.feedback:
            if item.question_id == question_id:
                return item
        return None
