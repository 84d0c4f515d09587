"""Quiz attempt state machine.

A :class:`QuizSession` is one student's in-memory attempt at a quiz. It is
driven by discrete events (answer selection, navigation, timer ticks,
submission) and moves from ``in_progress`` to the terminal ``submitted``
state exactly once, either by an explicit submit with every question
answered or by the countdown reaching zero.

Events that are not legal in the current state are ignored and reported with
a falsy return value; nothing here raises for them. All methods are plain
synchronous calls so a transition can never interleave with another one on
the event loop.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID, uuid4

import structlog

from .models import Question, Quiz


logger = structlog.get_logger(__name__)


class QuizSessionState(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


def score_percent(correct_count: int, total_questions: int) -> int:
    """Percentage of correct answers, rounded half up to an integer."""
    if total_questions <= 0:
        return 0
    value = Decimal(correct_count * 100) / Decimal(total_questions)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class QuizResult:
    """Outcome of a submitted attempt."""

    correct_count: int
    total_questions: int
    passing_score: int
    timed_out: bool = False

    @property
    def score_percent(self) -> int:
        return score_percent(self.correct_count, self.total_questions)

    @property
    def passed(self) -> bool:
        return self.score_percent >= self.passing_score


class QuizSession:
    """One student's attempt at a quiz.

    Attributes:
        session_id: Handle used by the API to address the attempt
        quiz: The quiz being taken
        student_id: Owner of the attempt
        student_name: Display name, used if a certificate is issued
        current_index: 0-based pointer to the displayed question
        answers: Selected option per question, None while unanswered
        remaining_seconds: Countdown, decremented by :meth:`tick`
        state: ``in_progress`` or ``submitted``
        result: Set once submitted
    """

    def __init__(
        self,
        quiz: Quiz,
        student_id: UUID,
        student_name: str = "",
        session_id: UUID | None = None,
        time_limit_seconds: int | None = None,
    ):
        self.session_id = session_id or uuid4()
        self.quiz = quiz
        self.student_id = student_id
        self.student_name = student_name
        self.current_index = 0
        self.answers: list[int | None] = [None] * quiz.question_count
        self.remaining_seconds = (
            time_limit_seconds
            if time_limit_seconds is not None
            else quiz.time_limit_seconds
        )
        self.state = QuizSessionState.IN_PROGRESS
        self.result: QuizResult | None = None
        self.started_at = datetime.now(UTC)
        self.submitted_at: datetime | None = None

    # ==========================================================================
    # Derived state
    # ==========================================================================

    @property
    def total_questions(self) -> int:
        return len(self.answers)

    @property
    def is_in_progress(self) -> bool:
        return self.state == QuizSessionState.IN_PROGRESS

    @property
    def is_submitted(self) -> bool:
        return self.state == QuizSessionState.SUBMITTED

    @property
    def answered_count(self) -> int:
        return sum(1 for answer in self.answers if answer is not None)

    @property
    def all_answered(self) -> bool:
        return all(answer is not None for answer in self.answers)

    @property
    def is_expired(self) -> bool:
        return self.remaining_seconds <= 0

    @property
    def can_submit(self) -> bool:
        return self.is_in_progress and (self.all_answered or self.is_expired)

    @property
    def current_question(self) -> Question | None:
        if not self.quiz.questions:
            return None
        return self.quiz.questions[self.current_index]

    @property
    def elapsed_seconds(self) -> int:
        end = self.submitted_at or datetime.now(UTC)
        return int((end - self.started_at).total_seconds())

    # ==========================================================================
    # Transitions
    # ==========================================================================

    def select_answer(self, question_index: int, option_index: int) -> bool:
        """Record an option for a question without moving the pointer."""
        if not self.is_in_progress:
            return False
        if not 0 <= question_index < self.total_questions:
            return False
        if not 0 <= option_index < len(self.quiz.questions[question_index].options):
            return False
        self.answers[question_index] = option_index
        return True

    def next_question(self) -> bool:
        """Advance one question; the current one must be answered."""
        if not self.is_in_progress:
            return False
        if self.current_index >= self.total_questions - 1:
            return False
        if self.answers[self.current_index] is None:
            return False
        self.current_index += 1
        return True

    def previous_question(self) -> bool:
        if not self.is_in_progress or self.current_index == 0:
            return False
        self.current_index -= 1
        return True

    def jump_to(self, index: int) -> bool:
        """Move to any question; navigation only, answers are not required."""
        if not self.is_in_progress:
            return False
        if not 0 <= index < self.total_questions:
            return False
        self.current_index = index
        return True

    def tick(self) -> bool:
        """Consume one second; returns True if this tick ended the attempt."""
        if not self.is_in_progress:
            return False
        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self.remaining_seconds == 0:
            self._finish(timed_out=True)
            return True
        return False

    def submit(self) -> QuizResult | None:
        """Submit when every question is answered or the time is up."""
        if not self.can_submit:
            return None
        return self._finish(timed_out=self.is_expired)

    def _finish(self, timed_out: bool) -> QuizResult:
        correct = sum(
            1
            for question, answer in zip(self.quiz.questions, self.answers, strict=True)
            if question.is_correct(answer)
        )
        self.result = QuizResult(
            correct_count=correct,
            total_questions=self.total_questions,
            passing_score=self.quiz.passing_score,
            timed_out=timed_out,
        )
        self.state = QuizSessionState.SUBMITTED
        self.submitted_at = datetime.now(UTC)

        logger.info(
            "quiz_session_submitted",
            quiz_id=str(self.quiz.id),
            correct_count=correct,
            total_questions=self.total_questions,
            score_percent=self.result.score_percent,
            passed=self.result.passed,
            timed_out=timed_out,
        )
        return self.result

    def __repr__(self) -> str:
        return (
            f"<QuizSession {self.session_id} {self.state.value} "
            f"{self.answered_count}/{self.total_questions} "
            f"{self.remaining_seconds}s left>"
        )
