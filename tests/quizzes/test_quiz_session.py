"""Tests for the quiz attempt state machine."""

from unittest.mock import Mock
from uuid import uuid4

import pytest

from scholarsync.quizzes.models import Question, Quiz
from scholarsync.quizzes.session import (
    QuizResult,
    QuizSession,
    QuizSessionState,
    score_percent,
)


@pytest.fixture
def session(quiz: Quiz) -> QuizSession:
    return QuizSession(quiz, student_id=uuid4(), student_name="Ana Souza")


def answer_all(session: QuizSession, answers: list[int]) -> None:
    for index, option in enumerate(answers):
        assert session.select_answer(index, option)


class TestScorePercent:
    """Tests for score rounding."""

    @pytest.mark.parametrize(
        "correct,total,expected",
        [
            (0, 3, 0),
            (1, 3, 33),
            (2, 3, 67),
            (3, 3, 100),
            (1, 8, 13),  # 12.5 rounds half up
            (7, 10, 70),
        ],
    )
    def test_rounds_half_up(self, correct: int, total: int, expected: int) -> None:
        assert score_percent(correct, total) == expected

    def test_zero_questions(self) -> None:
        assert score_percent(0, 0) == 0

    def test_result_pass_threshold_is_inclusive(self) -> None:
        assert QuizResult(7, 10, passing_score=70).passed is True
        assert QuizResult(6, 10, passing_score=70).passed is False


class TestInitialState:
    """A new session starts at the first question with nothing answered."""

    def test_initial_values(self, session: QuizSession, quiz: Quiz) -> None:
        assert session.state == QuizSessionState.IN_PROGRESS
        assert session.current_index == 0
        assert session.answers == [None, None, None]
        assert session.result is None
        assert session.current_question is quiz.questions[0]

    def test_default_time_limit_is_per_question(self, session: QuizSession) -> None:
        assert session.remaining_seconds == 3 * 120

    def test_explicit_time_limit(self, quiz: Quiz) -> None:
        quiz.time_limit_minutes = 5
        assert QuizSession(quiz, uuid4()).remaining_seconds == 300

    def test_time_limit_override(self, quiz: Quiz) -> None:
        assert QuizSession(quiz, uuid4(), time_limit_seconds=3).remaining_seconds == 3


class TestSelectAnswer:
    """Tests for answer selection."""

    def test_records_answer_without_moving(self, session: QuizSession) -> None:
        assert session.select_answer(1, 2) is True
        assert session.answers == [None, 2, None]
        assert session.current_index == 0

    def test_overwrites_and_is_idempotent(self, session: QuizSession) -> None:
        session.select_answer(0, 1)
        session.select_answer(0, 1)
        assert session.answers[0] == 1
        session.select_answer(0, 2)
        assert session.answers == [2, None, None]

    @pytest.mark.parametrize("question,option", [(-1, 0), (3, 0), (0, 3), (0, -1)])
    def test_out_of_range_is_ignored(
        self, session: QuizSession, question: int, option: int
    ) -> None:
        assert session.select_answer(question, option) is False
        assert session.answers == [None, None, None]

    def test_option_range_is_per_question(self, session: QuizSession) -> None:
        # third question has four options
        assert session.select_answer(2, 3) is True
        assert session.select_answer(1, 3) is False


class TestNavigation:
    """Tests for next, previous and jump."""

    def test_next_requires_current_answer(self, session: QuizSession) -> None:
        assert session.next_question() is False
        assert session.current_index == 0
        session.select_answer(0, 1)
        assert session.next_question() is True
        assert session.current_index == 1

    def test_next_stops_at_last_question(self, session: QuizSession) -> None:
        answer_all(session, [1, 0, 2])
        session.jump_to(2)
        assert session.next_question() is False
        assert session.current_index == 2

    def test_previous_stops_at_first_question(self, session: QuizSession) -> None:
        assert session.previous_question() is False
        session.select_answer(0, 0)
        session.next_question()
        assert session.previous_question() is True
        assert session.current_index == 0

    def test_jump_ignores_answers(self, session: QuizSession) -> None:
        assert session.jump_to(2) is True
        assert session.current_index == 2
        assert session.answers == [None, None, None]

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_jump_out_of_range(self, session: QuizSession, index: int) -> None:
        assert session.jump_to(index) is False
        assert session.current_index == 0


class TestSubmit:
    """Tests for manual submission."""

    def test_submit_incomplete_is_ignored(self, session: QuizSession) -> None:
        session.select_answer(0, 1)
        assert session.can_submit is False
        assert session.submit() is None
        assert session.state == QuizSessionState.IN_PROGRESS

    def test_submit_all_correct(self, session: QuizSession) -> None:
        answer_all(session, [1, 0, 2])
        result = session.submit()
        assert result is not None
        assert (result.correct_count, result.total_questions) == (3, 3)
        assert result.score_percent == 100
        assert result.passed is True
        assert result.timed_out is False
        assert session.state == QuizSessionState.SUBMITTED
        assert session.submitted_at is not None

    def test_submit_below_passing_score(self, session: QuizSession) -> None:
        answer_all(session, [1, 0, 0])
        result = session.submit()
        assert result.correct_count == 2
        assert result.score_percent == 67
        assert result.passed is False

    def test_passing_score_comes_from_quiz(self, quiz: Quiz) -> None:
        quiz.passing_score = 60
        session = QuizSession(quiz, uuid4())
        answer_all(session, [1, 0, 0])
        assert session.submit().passed is True

    def test_submitted_session_ignores_events(self, session: QuizSession) -> None:
        answer_all(session, [1, 0, 2])
        session.submit()
        assert session.select_answer(0, 0) is False
        assert session.previous_question() is False
        assert session.jump_to(1) is False
        assert session.tick() is False
        assert session.submit() is None
        assert session.answers == [1, 0, 2]


class TestTick:
    """Tests for the countdown."""

    def test_tick_decrements(self, quiz: Quiz) -> None:
        session = QuizSession(quiz, uuid4(), time_limit_seconds=3)
        assert session.tick() is False
        assert session.remaining_seconds == 2

    def test_expiry_forces_submission(self, quiz: Quiz) -> None:
        session = QuizSession(quiz, uuid4(), time_limit_seconds=2)
        session.select_answer(0, 1)
        assert session.tick() is False
        assert session.tick() is True
        assert session.state == QuizSessionState.SUBMITTED
        assert session.remaining_seconds == 0
        assert session.result.timed_out is True
        assert session.result.correct_count == 1
        assert session.result.total_questions == 3

    def test_unanswered_count_as_wrong(self) -> None:
        quiz = Quiz(
            course_id=uuid4(),
            title="One question",
            questions=[Question("2 + 2?", ["3", "4"], 1)],
        )
        session = QuizSession(quiz, uuid4(), time_limit_seconds=1)
        session.tick()
        assert session.result.correct_count == 0
        assert session.result.passed is False


class TestQuestionFromRow:
    """Stored questions are checked when loaded."""

    def row(self, **overrides):
        data = {
            "question_id": uuid4(),
            "text": "Mean of 1, 2, 3?",
            "options": ["1", "2", "3"],
            "correct_option_index": 1,
        }
        data.update(overrides)
        return Mock(**data)

    def test_valid_row(self) -> None:
        question = Question.from_row(self.row())
        assert question.options == ["1", "2", "3"]
        assert question.is_correct(1)

    @pytest.mark.parametrize("index", [-1, 3, None])
    def test_answer_key_out_of_range(self, index) -> None:
        with pytest.raises(ValueError, match="out of range"):
            Question.from_row(self.row(correct_option_index=index))

    def test_too_few_options(self) -> None:
        with pytest.raises(ValueError):
            Question.from_row(self.row(options=["only"], correct_option_index=0))
