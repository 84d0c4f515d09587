"""Pydantic schemas for quizzes and quiz sessions."""

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import (
    DEFAULT_PASSING_SCORE,
    MAX_OPTIONS,
    MIN_OPTIONS,
    Question,
    Quiz,
    QuizAttempt,
)
from .session import QuizResult, QuizSession


# ==============================================================================
# Authoring
# ==============================================================================


class CreateQuestionRequest(BaseModel):
    """One multiple-choice question.

    Options are trimmed and blank ones dropped; ``correct_option_index``
    refers to the options as sent and is remapped after blanks are removed.
    """

    text: str = Field(..., min_length=1, max_length=1000)
    options: list[str] = Field(..., min_length=MIN_OPTIONS)
    correct_option_index: int = Field(..., ge=0)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Question text cannot be blank")
        return v

    @model_validator(mode="after")
    def normalize_options(self) -> Self:
        if self.correct_option_index >= len(self.options):
            raise ValueError("correct_option_index is out of range")
        if not self.options[self.correct_option_index].strip():
            raise ValueError("The correct option cannot be blank")

        kept: list[str] = []
        correct = 0
        for index, option in enumerate(self.options):
            option = option.strip()
            if not option:
                continue
            if index == self.correct_option_index:
                correct = len(kept)
            kept.append(option)

        if not MIN_OPTIONS <= len(kept) <= MAX_OPTIONS:
            raise ValueError(
                f"A question needs between {MIN_OPTIONS} and {MAX_OPTIONS} options"
            )
        self.options = kept
        self.correct_option_index = correct
        return self


class CreateQuizRequest(BaseModel):
    """Quiz creation request."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    passing_score: int = Field(DEFAULT_PASSING_SCORE, ge=1, le=100)
    time_limit_minutes: int | None = Field(None, ge=1, le=600)
    questions: list[CreateQuestionRequest] = Field(..., min_length=1)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be blank")
        return v


class QuestionResponse(BaseModel):
    """Question as shown to students (no answer key)."""

    id: UUID
    position: int
    text: str
    options: list[str]

    @classmethod
    def from_entity(cls, question: Question, position: int) -> "QuestionResponse":
        return cls(
            id=question.id,
            position=position,
            text=question.text,
            options=question.options,
        )


class QuestionWithAnswerResponse(QuestionResponse):
    """Question as shown to the authoring instructor."""

    correct_option_index: int

    @classmethod
    def from_entity(
        cls, question: Question, position: int
    ) -> "QuestionWithAnswerResponse":
        return cls(
            id=question.id,
            position=position,
            text=question.text,
            options=question.options,
            correct_option_index=question.correct_option_index,
        )


class QuizResponse(BaseModel):
    """Quiz response."""

    id: UUID
    course_id: UUID
    title: str
    description: str | None = None
    passing_score: int
    time_limit_minutes: int | None = None
    time_limit_seconds: int
    question_count: int
    questions: list[QuestionResponse] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_entity(cls, quiz: Quiz, include_answers: bool = False) -> "QuizResponse":
        question_cls = QuestionWithAnswerResponse if include_answers else QuestionResponse
        return cls(
            id=quiz.id,
            course_id=quiz.course_id,
            title=quiz.title,
            description=quiz.description,
            passing_score=quiz.passing_score,
            time_limit_minutes=quiz.time_limit_minutes,
            time_limit_seconds=quiz.time_limit_seconds,
            question_count=quiz.question_count,
            questions=[
                question_cls.from_entity(q, i) for i, q in enumerate(quiz.questions)
            ],
            created_at=quiz.created_at,
        )


class QuizSummaryResponse(BaseModel):
    """Quiz entry in a course listing."""

    id: UUID
    title: str
    question_count: int
    passing_score: int
    time_limit_seconds: int

    @classmethod
    def from_entity(cls, quiz: Quiz) -> "QuizSummaryResponse":
        return cls(
            id=quiz.id,
            title=quiz.title,
            question_count=quiz.question_count,
            passing_score=quiz.passing_score,
            time_limit_seconds=quiz.time_limit_seconds,
        )


# ==============================================================================
# Sessions
# ==============================================================================


class SelectAnswerRequest(BaseModel):
    question_index: int = Field(..., ge=0)
    option_index: int = Field(..., ge=0)


class JumpRequest(BaseModel):
    index: int = Field(..., ge=0)


class QuizResultResponse(BaseModel):
    """Score of a submitted attempt."""

    correct_count: int
    total_questions: int
    score_percent: int
    passing_score: int
    passed: bool
    timed_out: bool
    attempt_saved: bool = True
    certificate_id: str | None = None

    @classmethod
    def from_result(
        cls,
        result: QuizResult,
        attempt_saved: bool = True,
        certificate_id: str | None = None,
    ) -> "QuizResultResponse":
        return cls(
            correct_count=result.correct_count,
            total_questions=result.total_questions,
            score_percent=result.score_percent,
            passing_score=result.passing_score,
            passed=result.passed,
            timed_out=result.timed_out,
            attempt_saved=attempt_saved,
            certificate_id=certificate_id,
        )


class QuizSessionResponse(BaseModel):
    """Snapshot of a quiz session after an event.

    ``applied`` is False when the event was not legal in the current state
    and left the session unchanged.
    """

    session_id: UUID
    quiz_id: UUID
    quiz_title: str
    state: str
    applied: bool = True
    current_index: int
    current_question: QuestionResponse | None = None
    total_questions: int
    answers: list[int | None]
    answered_count: int
    remaining_seconds: int
    can_submit: bool
    result: QuizResultResponse | None = None

    @classmethod
    def from_session(
        cls,
        session: QuizSession,
        applied: bool = True,
        result: QuizResultResponse | None = None,
    ) -> "QuizSessionResponse":
        question = session.current_question
        if result is None and session.result is not None:
            result = QuizResultResponse.from_result(session.result)
        return cls(
            session_id=session.session_id,
            quiz_id=session.quiz.id,
            quiz_title=session.quiz.title,
            state=session.state.value,
            applied=applied,
            current_index=session.current_index,
            current_question=(
                QuestionResponse.from_entity(question, session.current_index)
                if question
                else None
            ),
            total_questions=session.total_questions,
            answers=list(session.answers),
            answered_count=session.answered_count,
            remaining_seconds=session.remaining_seconds,
            can_submit=session.can_submit,
            result=result,
        )


class QuizAttemptResponse(BaseModel):
    """Stored attempt."""

    attempt_id: UUID
    quiz_id: UUID
    course_id: UUID
    correct_count: int
    total_questions: int
    score_percent: int
    passed: bool
    timed_out: bool
    time_taken_seconds: int
    completed_at: datetime

    @classmethod
    def from_entity(cls, attempt: QuizAttempt) -> "QuizAttemptResponse":
        return cls(
            attempt_id=attempt.attempt_id,
            quiz_id=attempt.quiz_id,
            course_id=attempt.course_id,
            correct_count=attempt.correct_count,
            total_questions=attempt.total_questions,
            score_percent=attempt.score_percent,
            passed=attempt.passed,
            timed_out=attempt.timed_out,
            time_taken_seconds=attempt.time_taken_seconds,
            completed_at=attempt.completed_at,
        )


class PassedQuizzesResponse(BaseModel):
    course_id: UUID
    quiz_ids: list[UUID]
