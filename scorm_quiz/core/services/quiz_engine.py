"""Service for the question bank, the current question and the running score."""

from __future__ import annotations

import random

from scorm_quiz.constants.quiz_constants import OPTIONS_PER_QUESTION
from scorm_quiz.core.models import AnswerResult, Question, QuizSession, ShuffledOption


class QuizEngine:
    """Owns the ordered question bank and the learner's progress through it."""

    def __init__(self) -> None:
        self._questions: tuple[Question, ...] = ()
        self._index: int = 0
        self._score: int = 0

        # Presentation state of the current question
        self._shuffle_rng = random.Random()
        self._shuffled_options: tuple[ShuffledOption, ...] = ()
        self._feedback: AnswerResult | None = None

    def load_bank(self, questions: list[Question]) -> None:
        """Replace the bank and start over from the first question."""
        if not questions:
            raise ValueError("Question bank must contain at least one question.")
        for question in questions:
            self._validate_question(question)
        self._questions = tuple(questions)
        self.reset()

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def session(self) -> QuizSession:
        return QuizSession(
            current_question_index=self._index,
            score=self._score,
            total_questions=self.total_questions,
        )

    @property
    def is_exhausted(self) -> bool:
        return self._index >= self.total_questions

    @property
    def is_feedback_pending(self) -> bool:
        return self._feedback is not None

    @property
    def feedback(self) -> AnswerResult | None:
        return self._feedback

    @property
    def shuffled_options(self) -> tuple[ShuffledOption, ...]:
        return self._shuffled_options

    def current_question(self) -> Question | None:
        if self.is_exhausted:
            return None
        return self._questions[self._index]

    def set_shuffle_seed(self, seed: int | None) -> None:
        self._shuffle_rng.seed(seed)

    def present_question(self, index: int) -> tuple[ShuffledOption, ...] | None:
        """Shuffle the options of question ``index``; ``None`` once the bank is exhausted."""
        self._feedback = None
        if index >= self.total_questions:
            self._shuffled_options = ()
            return None

        question = self._questions[index]
        options = [
            ShuffledOption(
                label=option.label,
                image=option.image,
                is_correct=(position == question.correct_option_index),
                original_index=position,
            )
            for position, option in enumerate(question.options)
        ]
        self._shuffle_rng.shuffle(options)
        self._shuffled_options = tuple(options)
        return self._shuffled_options

    def submit_answer(self, selected_index: int) -> AnswerResult | None:
        """Grade the option at ``selected_index``.

        Returns ``None`` without touching the score when no question is on
        screen or an answer for it is already awaiting advancement.
        """
        if self._feedback is not None or not self._shuffled_options:
            return None
        if not 0 <= selected_index < len(self._shuffled_options):
            raise ValueError(
                f"Selected option must be between 0 and {len(self._shuffled_options) - 1}."
            )

        is_correct = self._shuffled_options[selected_index].is_correct
        if is_correct:
            self._score += 1
        correct_index = next(
            i for i, option in enumerate(self._shuffled_options) if option.is_correct
        )
        self._feedback = AnswerResult(
            selected_index=selected_index,
            correct_index=correct_index,
            is_correct=is_correct,
        )
        return self._feedback

    def advance(self) -> int:
        if self.is_exhausted:
            raise RuntimeError("Cannot advance past the last question.")
        self._index += 1
        self._feedback = None
        self._shuffled_options = ()
        return self._index

    def reset(self) -> None:
        self._index = 0
        self._score = 0
        self._feedback = None
        self._shuffled_options = ()

    def restore(self, current_question_index: int, score: int) -> None:
        """Resume from saved progress, rejecting values this bank cannot hold."""
        candidate = QuizSession(
            current_question_index=current_question_index,
            score=score,
            total_questions=self.total_questions,
        )
        if not candidate.is_consistent():
            raise ValueError(
                f"Saved progress (question {current_question_index}, score {score}) "
                f"does not fit a bank of {self.total_questions} questions."
            )
        self._index = current_question_index
        self._score = score
        self._feedback = None
        self._shuffled_options = ()

    @staticmethod
    def _validate_question(question: Question) -> None:
        if len(question.options) != OPTIONS_PER_QUESTION:
            raise ValueError(
                f"Question {question.id} must have exactly {OPTIONS_PER_QUESTION} options."
            )
        if not 0 <= question.correct_option_index < OPTIONS_PER_QUESTION:
            raise ValueError(
                f"Question {question.id}: correct option index must be between 0 and 3."
            )
        if not question.prompt.strip():
            raise ValueError(f"Question {question.id}: prompt must not be empty.")
