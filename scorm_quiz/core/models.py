"""Domain models for the assessment session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from scorm_quiz.constants.quiz_constants import (
    DEFAULT_PASSING_PERCENTAGE,
    FEEDBACK_DELAY_SECONDS,
)
from scorm_quiz.constants.scorm_constants import SUSPEND_DATA_LIMIT


class SessionPhase(str, Enum):
    LOADING = "LOADING"
    START = "START"
    QUIZZING = "QUIZZING"
    RESULTS = "RESULTS"


class HostConnectionState(str, Enum):
    NOT_SEARCHED = "NOT_SEARCHED"
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    INITIALIZED = "INITIALIZED"
    TERMINATED = "TERMINATED"


class LessonStatus(str, Enum):
    """SCORM 1.2 ``cmi.core.lesson_status`` vocabulary."""

    PASSED = "passed"
    COMPLETED = "completed"
    FAILED = "failed"
    INCOMPLETE = "incomplete"
    BROWSED = "browsed"
    NOT_ATTEMPTED = "not attempted"


@dataclass(frozen=True, slots=True)
class QuestionOption:
    label: str
    image: str | None = None


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with exactly four options."""

    id: int
    prompt: str
    options: tuple[QuestionOption, ...]
    correct_option_index: int


@dataclass(frozen=True, slots=True)
class ShuffledOption:
    """One option as presented to the learner, tagged with its correctness."""

    label: str
    image: str | None
    is_correct: bool
    original_index: int


@dataclass(slots=True)
class QuizSession:
    """Mutable progress through the bank.

    ``0 <= score <= index <= total`` holds between questions. While feedback
    for a correct answer is pending the point is already counted but the index
    has not moved yet, so ``is_consistent`` is only checked after an advance.
    """

    current_question_index: int = 0
    score: int = 0
    total_questions: int = 0

    def is_consistent(self) -> bool:
        return 0 <= self.score <= self.current_question_index <= self.total_questions


@dataclass(frozen=True, slots=True)
class AnswerResult:
    """Feedback for a submitted answer, in presentation (shuffled) indices."""

    selected_index: int
    correct_index: int
    is_correct: bool


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    percentage: int
    passed: bool
    elapsed_seconds: int
    score: int
    total_questions: int


@dataclass(frozen=True, slots=True)
class DisplayState:
    """Read-only snapshot handed to the presentation layer."""

    phase: SessionPhase
    score: int
    total_questions: int
    progress_fraction: float
    question_number: int | None = None
    question_text: str | None = None
    shuffled_options: tuple[ShuffledOption, ...] | None = None
    feedback: AnswerResult | None = None
    outcome: SessionOutcome | None = None


@dataclass(frozen=True, slots=True)
class SessionSettings:
    passing_percentage: int = DEFAULT_PASSING_PERCENTAGE
    feedback_delay_seconds: float = FEEDBACK_DELAY_SECONDS
    suspend_data_limit: int = SUSPEND_DATA_LIMIT
