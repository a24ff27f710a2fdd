"""State machine sequencing the quiz engine, checkpoints and the LMS report."""

from __future__ import annotations

import logging
from threading import Lock
import time
from typing import Callable

from scorm_quiz.constants.scorm_constants import SCORE_MAX, SCORE_MIN
from scorm_quiz.core.models import (
    AnswerResult,
    DisplayState,
    LessonStatus,
    Question,
    SessionOutcome,
    SessionPhase,
    SessionSettings,
)
from scorm_quiz.core.services.host_connection import HostConnection
from scorm_quiz.core.services.lms_reporter import LmsReporter
from scorm_quiz.core.services.progress_store import ProgressStore, format_session_time
from scorm_quiz.core.services.quiz_engine import QuizEngine

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def compute_percentage(score: int, total_questions: int) -> int:
    """``100 * score / total`` rounded half up."""
    if total_questions <= 0:
        return 0
    return (200 * score + total_questions) // (2 * total_questions)


class SessionController:
    """Facade driving one learner session: LOADING -> START -> QUIZZING -> RESULTS.

    The delay between an answer and the next question is a deadline checked
    against ``clock`` whenever an event or a display poll arrives, so the
    controller never runs timers of its own.
    """

    def __init__(
        self,
        engine: QuizEngine,
        host: HostConnection,
        settings: SessionSettings | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._lock = Lock()
        self._engine = engine
        self._host = host
        self._settings = settings or SessionSettings()
        self._clock = clock

        self._store = ProgressStore(host, size_limit=self._settings.suspend_data_limit)
        self._reporter = LmsReporter(host)

        self._phase = SessionPhase.LOADING
        self._started_at = clock()
        self._advance_due_at: float | None = None
        self._outcome: SessionOutcome | None = None

    @classmethod
    def from_questions(
        cls,
        questions: list[Question],
        host: HostConnection,
        settings: SessionSettings | None = None,
        clock: Clock = time.monotonic,
    ) -> SessionController:
        engine = QuizEngine()
        engine.load_bank(questions)
        return cls(engine, host, settings=settings, clock=clock)

    # --- Queries ---

    @property
    def phase(self) -> SessionPhase:
        with self._lock:
            return self._phase

    @property
    def outcome(self) -> SessionOutcome | None:
        with self._lock:
            return self._outcome

    def get_display_state(self) -> DisplayState:
        with self._lock:
            self._process_due_transitions()
            session = self._engine.session
            total = session.total_questions
            progress = session.current_question_index / total if total else 0.0
            if self._phase is not SessionPhase.QUIZZING:
                return DisplayState(
                    phase=self._phase,
                    score=session.score,
                    total_questions=total,
                    progress_fraction=progress,
                    outcome=self._outcome,
                )
            question = self._engine.current_question()
            return DisplayState(
                phase=self._phase,
                score=session.score,
                total_questions=total,
                progress_fraction=progress,
                question_number=session.current_question_index + 1,
                question_text=question.prompt if question else None,
                shuffled_options=self._engine.shuffled_options,
                feedback=self._engine.feedback,
            )

    # --- Events ---

    def start(self) -> SessionPhase:
        """Leave LOADING: resume from saved progress when there is any."""
        with self._lock:
            if self._phase is not SessionPhase.LOADING:
                return self._phase
            self._started_at = self._clock()
            snapshot = self._store.load()
            if snapshot is not None:
                try:
                    self._engine.restore(snapshot.current_question_index, snapshot.score)
                except ValueError as exc:
                    logger.error("Ignoring saved progress: %s", exc)
                    self._store.clear()
                else:
                    logger.info(
                        "Resuming at question %d with score %d.",
                        snapshot.current_question_index + 1,
                        snapshot.score,
                    )
                    self._enter_quizzing()
                    return self._phase
            self._phase = SessionPhase.START
            return self._phase

    def on_begin(self) -> bool:
        with self._lock:
            if self._phase is not SessionPhase.START:
                return False
            self._enter_quizzing()
            return True

    def on_select_option(self, index: int) -> AnswerResult | None:
        """Grade a selection; ``None`` when no answer is accepted right now."""
        with self._lock:
            self._process_due_transitions()
            if self._phase is not SessionPhase.QUIZZING:
                return None
            result = self._engine.submit_answer(index)
            if result is not None:
                self._advance_due_at = self._clock() + self._settings.feedback_delay_seconds
            return result

    def on_retry(self) -> bool:
        with self._lock:
            if self._phase is not SessionPhase.RESULTS:
                return False
            self._engine.reset()
            self._advance_due_at = None
            self._outcome = None
            self._reporter.set_lesson_status(LessonStatus.INCOMPLETE)
            self._store.clear()
            self._reporter.set_lesson_status(LessonStatus.NOT_ATTEMPTED)
            self._started_at = self._clock()
            self._phase = SessionPhase.START
            return True

    def process_due_transitions(self) -> None:
        with self._lock:
            self._process_due_transitions()

    def shutdown(self) -> bool:
        """Finish the LMS session; the connection is inert afterwards."""
        with self._lock:
            finished = self._host.terminate()
            if finished:
                logger.info("SCORM connection finished.")
            return finished

    # --- Transitions ---

    def _enter_quizzing(self) -> None:
        self._phase = SessionPhase.QUIZZING
        if self._engine.present_question(self._engine.session.current_question_index) is None:
            self._enter_results()

    def _process_due_transitions(self) -> None:
        if self._advance_due_at is None or self._clock() < self._advance_due_at:
            return
        self._advance_due_at = None
        if self._phase is not SessionPhase.QUIZZING:
            return
        next_index = self._engine.advance()
        if self._engine.present_question(next_index) is None:
            self._enter_results()
            return
        self._store.save(self._engine.session)

    def _enter_results(self) -> None:
        if self._phase is SessionPhase.RESULTS:
            return
        self._phase = SessionPhase.RESULTS
        session = self._engine.session
        percentage = compute_percentage(session.score, session.total_questions)
        elapsed = max(0, int(self._clock() - self._started_at + 0.5))
        self._outcome = SessionOutcome(
            percentage=percentage,
            passed=percentage >= self._settings.passing_percentage,
            elapsed_seconds=elapsed,
            score=session.score,
            total_questions=session.total_questions,
        )
        self._report_completion(self._outcome)

    def _report_completion(self, outcome: SessionOutcome) -> None:
        self._reporter.set_score(outcome.percentage, SCORE_MIN, SCORE_MAX)
        # The pass/fail status is immediately superseded by "completed".
        self._reporter.set_lesson_status(
            LessonStatus.PASSED if outcome.passed else LessonStatus.FAILED
        )
        self._reporter.set_lesson_status(LessonStatus.COMPLETED)
        self._reporter.set_session_time(format_session_time(outcome.elapsed_seconds))
        self._store.clear()
        logger.info(
            "Quiz finished: %d/%d correct (%d%%), %s.",
            outcome.score,
            outcome.total_questions,
            outcome.percentage,
            "passed" if outcome.passed else "failed",
        )
