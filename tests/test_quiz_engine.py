"""
Tests for scorm_quiz/core/services/quiz_engine.py
"""

import random

import pytest

from conftest import correct_position, make_question, wrong_position
from scorm_quiz.core.models import Question, QuestionOption
from scorm_quiz.core.services.quiz_engine import QuizEngine


@pytest.fixture
def engine(four_questions):
    quiz = QuizEngine()
    quiz.load_bank(four_questions)
    quiz.set_shuffle_seed(1234)
    return quiz


class TestLoadBank:
    """Validation of the question bank."""

    def test_empty_bank_rejected(self):
        with pytest.raises(ValueError):
            QuizEngine().load_bank([])

    def test_wrong_option_count_rejected(self):
        question = Question(
            id=1,
            prompt="Three options?",
            options=(QuestionOption("a"), QuestionOption("b"), QuestionOption("c")),
            correct_option_index=0,
        )
        with pytest.raises(ValueError, match="exactly 4 options"):
            QuizEngine().load_bank([question])

    def test_correct_index_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="between 0 and 3"):
            QuizEngine().load_bank([make_question(1, correct_option_index=4)])

    def test_load_resets_progress(self, engine, four_questions):
        engine.present_question(0)
        engine.submit_answer(correct_position(engine.shuffled_options))
        engine.advance()
        engine.load_bank(four_questions)
        session = engine.session
        assert (session.current_question_index, session.score, session.total_questions) == (0, 0, 4)


class TestPresentQuestion:
    """Option shuffling."""

    def test_permutation_is_bijection_and_keeps_correct_flag(self, engine, four_questions):
        for _ in range(25):
            options = engine.present_question(1)
            assert sorted(option.original_index for option in options) == [0, 1, 2, 3]
            flagged = [option for option in options if option.is_correct]
            assert len(flagged) == 1
            assert flagged[0].original_index == four_questions[1].correct_option_index
            assert flagged[0].label == four_questions[1].options[3].label

    def test_order_is_recomputed_each_presentation(self, engine):
        orders = {
            tuple(option.original_index for option in engine.present_question(0))
            for _ in range(50)
        }
        assert len(orders) > 1

    def test_same_seed_same_order(self, four_questions):
        first, second = QuizEngine(), QuizEngine()
        for quiz in (first, second):
            quiz.load_bank(four_questions)
            quiz.set_shuffle_seed(7)
        assert first.present_question(2) == second.present_question(2)

    def test_exhausted_index(self, engine):
        assert engine.present_question(4) is None
        assert engine.shuffled_options == ()


class TestSubmitAnswer:
    """Grading and the feedback-pending guard."""

    def test_correct_answer_scores(self, engine):
        options = engine.present_question(0)
        result = engine.submit_answer(correct_position(options))
        assert result.is_correct
        assert result.correct_index == result.selected_index
        assert engine.session.score == 1

    def test_wrong_answer_reports_true_position(self, engine):
        options = engine.present_question(0)
        selected = wrong_position(options)
        result = engine.submit_answer(selected)
        assert not result.is_correct
        assert result.selected_index == selected
        assert options[result.correct_index].is_correct
        assert engine.session.score == 0

    def test_second_submission_is_ignored(self, engine):
        options = engine.present_question(0)
        first = engine.submit_answer(wrong_position(options))
        assert engine.submit_answer(correct_position(options)) is None
        assert engine.feedback == first
        assert engine.session.score == 0

    def test_submission_without_question_is_ignored(self, engine):
        assert engine.submit_answer(0) is None

    @pytest.mark.parametrize("index", [-1, 4, 10])
    def test_out_of_range_selection(self, engine, index):
        engine.present_question(0)
        with pytest.raises(ValueError):
            engine.submit_answer(index)
        assert not engine.is_feedback_pending


class TestAdvanceAndReset:
    """Progression through the bank."""

    def test_advance_moves_by_one(self, engine):
        engine.present_question(0)
        engine.submit_answer(0)
        assert engine.advance() == 1
        assert engine.session.current_question_index == 1
        assert not engine.is_feedback_pending
        assert engine.shuffled_options == ()

    def test_advance_does_not_wrap(self, engine):
        for _ in range(4):
            engine.advance()
        assert engine.is_exhausted
        with pytest.raises(RuntimeError):
            engine.advance()
        assert engine.session.current_question_index == 4

    def test_reset(self, engine):
        engine.present_question(0)
        engine.submit_answer(correct_position(engine.shuffled_options))
        engine.advance()
        engine.reset()
        session = engine.session
        assert (session.current_question_index, session.score) == (0, 0)
        assert engine.current_question().id == 1

    def test_restore(self, engine):
        engine.restore(2, 2)
        assert engine.session.current_question_index == 2
        assert engine.session.score == 2
        assert engine.current_question().id == 3

    @pytest.mark.parametrize("index,score", [(5, 0), (1, 2), (-1, 0)])
    def test_restore_rejects_inconsistent_progress(self, engine, index, score):
        with pytest.raises(ValueError):
            engine.restore(index, score)
        assert engine.session.current_question_index == 0

    def test_invariant_holds_for_random_play(self, engine):
        rng = random.Random(99)
        for _ in range(20):
            engine.reset()
            while not engine.is_exhausted:
                options = engine.present_question(engine.session.current_question_index)
                for _ in range(rng.randint(1, 3)):
                    engine.submit_answer(rng.randrange(len(options)))
                engine.advance()
                assert engine.session.is_consistent()
            assert engine.session.current_question_index == engine.total_questions

    def test_point_is_counted_before_advance(self, engine):
        engine.present_question(0)
        engine.submit_answer(correct_position(engine.shuffled_options))
        assert (engine.session.current_question_index, engine.session.score) == (0, 1)
        engine.advance()
        assert engine.session.is_consistent()
