"""Quiz service layer.

Handles quiz authoring, the lifecycle of in-memory quiz sessions and the
persistence of their outcomes (attempts and certificates).
"""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from scholarsync.core.sessions import SessionRegistry

from .models import Question, Quiz, QuizAttempt
from .session import QuizResult, QuizSession
from .timer import QuizTimer


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from scholarsync.certificates.service import CertificateService
    from scholarsync.courses.service import CourseService
    from scholarsync.notifications.service import NotificationService

    from .schemas import CreateQuizRequest

logger = structlog.get_logger(__name__)


# ==============================================================================
# Exceptions
# ==============================================================================


class QuizError(Exception):
    """Base quiz error."""

    def __init__(self, message: str, code: str = "quiz_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class QuizNotFoundError(QuizError):
    def __init__(self, message: str = "Quiz not found"):
        super().__init__(message, "quiz_not_found")


class QuizSessionNotFoundError(QuizError):
    def __init__(self, message: str = "Quiz session not found"):
        super().__init__(message, "quiz_session_not_found")


class QuizIncompleteError(QuizError):
    """Submit attempted before every question was answered."""

    def __init__(
        self,
        message: str = "All questions must be answered before submitting",
    ):
        super().__init__(message, "quiz_incomplete")


class EmptyQuizError(QuizError):
    def __init__(self, message: str = "Quiz has no questions"):
        super().__init__(message, "quiz_empty")


class InvalidQuizDataError(QuizError):
    """Stored quiz data failed validation on load."""

    def __init__(self, message: str = "Quiz data is invalid"):
        super().__init__(message, "quiz_invalid")


@dataclass(frozen=True)
class QuizOutcome:
    """Result of a finalised session plus what was persisted for it."""

    result: QuizResult
    attempt_saved: bool
    certificate_id: str | None = None


# ==============================================================================
# Service
# ==============================================================================


class QuizService:
    """Service for quizzes and quiz sessions.

    Sessions live in this process only. Each in-progress session owns a
    :class:`QuizTimer`; the timer and a manual submit both end up in the same
    finalisation task, which runs once per session.
    """

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        notifications: "NotificationService | None" = None,
        certificates: "CertificateService | None" = None,
        course_service: "CourseService | None" = None,
        timer_interval: float = 1.0,
    ):
        """Initialize with Cassandra session and collaborators."""
        self.session = session
        self.keyspace = keyspace
        self.notifications = notifications
        self.certificates = certificates
        self.course_service = course_service
        self.timer_interval = timer_interval
        self._sessions: SessionRegistry[QuizSession] = SessionRegistry("quiz")
        self._timers: dict[UUID, QuizTimer] = {}
        self._finalizations: dict[UUID, asyncio.Task] = {}
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_quiz = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quizzes
            (id, course_id, title, description, passing_score,
             time_limit_minutes, created_by, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_question = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quiz_questions
            (quiz_id, position, question_id, text, options, correct_option_index)
            VALUES (?, ?, ?, ?, ?, ?)
        """)
        self._insert_quiz_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quizzes_by_course
            (course_id, created_at, quiz_id, title)
            VALUES (?, ?, ?, ?)
        """)
        self._get_quiz = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.quizzes WHERE id = ?"
        )
        self._get_questions = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.quiz_questions WHERE quiz_id = ?"
        )
        self._get_quizzes_by_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.quizzes_by_course WHERE course_id = ?"
        )
        self._delete_quiz = self.session.prepare(
            f"DELETE FROM {self.keyspace}.quizzes WHERE id = ?"
        )
        self._delete_questions = self.session.prepare(
            f"DELETE FROM {self.keyspace}.quiz_questions WHERE quiz_id = ?"
        )
        self._delete_quiz_by_course = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.quizzes_by_course
            WHERE course_id = ? AND created_at = ? AND quiz_id = ?
        """)
        self._insert_attempt = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quiz_attempts
            (student_id, quiz_id, completed_at, attempt_id, course_id,
             correct_count, total_questions, score_percent, passed,
             timed_out, time_taken_seconds)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_attempts = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.quiz_attempts WHERE student_id = ?"
        )
        self._get_quiz_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts
            WHERE student_id = ? AND quiz_id = ?
        """)

    # ==========================================================================
    # Quiz Authoring
    # ==========================================================================

    async def create_quiz(
        self, course_id: UUID, data: "CreateQuizRequest", created_by: UUID
    ) -> Quiz:
        """Create a quiz with its questions."""
        quiz = Quiz(
            course_id=course_id,
            title=data.title,
            description=data.description,
            passing_score=data.passing_score,
            time_limit_minutes=data.time_limit_minutes,
            questions=[
                Question(
                    text=q.text,
                    options=q.options,
                    correct_option_index=q.correct_option_index,
                )
                for q in data.questions
            ],
            created_by=created_by,
        )

        await self.session.aexecute(
            self._insert_quiz,
            (
                quiz.id,
                quiz.course_id,
                quiz.title,
                quiz.description,
                quiz.passing_score,
                quiz.time_limit_minutes,
                quiz.created_by,
                quiz.created_at,
            ),
        )
        for position, question in enumerate(quiz.questions):
            await self.session.aexecute(
                self._insert_question,
                (
                    quiz.id,
                    position,
                    question.id,
                    question.text,
                    question.options,
                    question.correct_option_index,
                ),
            )
        await self.session.aexecute(
            self._insert_quiz_by_course,
            (quiz.course_id, quiz.created_at, quiz.id, quiz.title),
        )

        logger.info(
            "quiz_created",
            quiz_id=str(quiz.id),
            course_id=str(course_id),
            questions=quiz.question_count,
        )
        return quiz

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        """Load a quiz with its questions in order.

        Raises:
            InvalidQuizDataError: If a stored question is malformed
        """
        rows = await self.session.aexecute(self._get_quiz, (quiz_id,))
        row = rows.one()
        if not row:
            return None
        question_rows = await self.session.aexecute(self._get_questions, (quiz_id,))
        try:
            return Quiz.from_row(row, list(question_rows))
        except ValueError as e:
            logger.error("quiz_data_invalid", quiz_id=str(quiz_id), error=str(e))
            raise InvalidQuizDataError from e

    async def list_course_quizzes(self, course_id: UUID) -> list[Quiz]:
        rows = await self.session.aexecute(self._get_quizzes_by_course, (course_id,))
        quizzes = []
        for row in rows:
            try:
                quiz = await self.get_quiz(row.quiz_id)
            except InvalidQuizDataError:
                continue
            if quiz:
                quizzes.append(quiz)
        return quizzes

    async def get_quiz_course_id(self, quiz_id: UUID) -> UUID | None:
        """Owning course of a quiz, read without its questions."""
        row = (await self.session.aexecute(self._get_quiz, (quiz_id,))).one()
        return row.course_id if row else None

    async def delete_quiz(self, quiz_id: UUID) -> None:
        """Delete a quiz and its questions.

        Raises:
            QuizNotFoundError: If the quiz does not exist
        """
        row = (await self.session.aexecute(self._get_quiz, (quiz_id,))).one()
        if not row:
            raise QuizNotFoundError

        await self.session.aexecute(self._delete_questions, (quiz_id,))
        await self.session.aexecute(self._delete_quiz, (quiz_id,))
        await self.session.aexecute(
            self._delete_quiz_by_course, (row.course_id, row.created_at, quiz_id)
        )
        logger.info("quiz_deleted", quiz_id=str(quiz_id))

    # ==========================================================================
    # Quiz Sessions
    # ==========================================================================

    async def start_session(
        self, quiz_id: UUID, student_id: UUID, student_name: str = ""
    ) -> QuizSession:
        """Start a fresh attempt and its countdown.

        Any earlier unfinished attempt of the same student at the same quiz
        is discarded, so a retry is always a full restart.

        Raises:
            QuizNotFoundError: If the quiz does not exist
            EmptyQuizError: If the quiz has no questions
        """
        quiz = await self.get_quiz(quiz_id)
        if not quiz:
            raise QuizNotFoundError
        if not quiz.questions:
            raise EmptyQuizError

        for existing in self._sessions.values():
            if existing.student_id == student_id and existing.quiz.id == quiz_id:
                self.discard_session(existing.session_id, student_id)

        session = QuizSession(quiz, student_id, student_name=student_name)
        self._sessions.add(session.session_id, student_id, session)

        timer = QuizTimer(
            session, on_expired=self._on_timer_expired, interval=self.timer_interval
        )
        self._timers[session.session_id] = timer
        timer.start()

        logger.info(
            "quiz_session_started",
            session_id=str(session.session_id),
            quiz_id=str(quiz_id),
            student_id=str(student_id),
            time_limit_seconds=session.remaining_seconds,
        )
        return session

    def get_session(self, session_id: UUID, student_id: UUID) -> QuizSession | None:
        return self._sessions.get(session_id, student_id)

    def require_session(self, session_id: UUID, student_id: UUID) -> QuizSession:
        session = self.get_session(session_id, student_id)
        if session is None:
            raise QuizSessionNotFoundError
        return session

    async def submit_session(self, session_id: UUID, student_id: UUID) -> QuizOutcome:
        """Submit an attempt and wait for its outcome to be recorded.

        Submitting an attempt that already ended (by an earlier submit or by
        the timer) returns the outcome of that first finalisation.

        Raises:
            QuizSessionNotFoundError: If the session is unknown to the caller
            QuizIncompleteError: If questions are unanswered and time remains
        """
        session = self.require_session(session_id, student_id)

        if session.is_in_progress:
            if session.submit() is None:
                raise QuizIncompleteError
            self._cancel_timer(session_id)

        return await asyncio.shield(self._finalization(session))

    async def get_outcome(
        self, session_id: UUID, student_id: UUID
    ) -> QuizOutcome | None:
        """Outcome of a finished session, None while it is in progress."""
        session = self.require_session(session_id, student_id)
        if not session.is_submitted:
            return None
        return await asyncio.shield(self._finalization(session))

    def discard_session(self, session_id: UUID, student_id: UUID) -> bool:
        """Forget a session, stopping its countdown if it is still running."""
        session = self._sessions.remove(session_id, student_id)
        if session is None:
            return False
        self._cancel_timer(session_id)
        self._finalizations.pop(session_id, None)
        logger.info("quiz_session_discarded", session_id=str(session_id))
        return True

    async def shutdown(self) -> None:
        """Stop every countdown; called on application shutdown."""
        for session_id in list(self._timers):
            self._cancel_timer(session_id)
        pending = [task for task in self._finalizations.values() if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._finalizations.clear()
        self._sessions.clear()
        logger.info("quiz_sessions_shutdown")

    @property
    def active_session_count(self) -> int:
        return len(self._sessions)

    def _cancel_timer(self, session_id: UUID) -> None:
        timer = self._timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()

    async def _on_timer_expired(self, session: QuizSession) -> None:
        self._timers.pop(session.session_id, None)
        await asyncio.shield(self._finalization(session))

    def _finalization(self, session: QuizSession) -> "asyncio.Task[QuizOutcome]":
        task = self._finalizations.get(session.session_id)
        if task is None:
            task = asyncio.create_task(
                self._finalize(session), name=f"quiz-finalize-{session.session_id}"
            )
            self._finalizations[session.session_id] = task
        return task

    async def _finalize(self, session: QuizSession) -> QuizOutcome:
        """Persist the attempt, issue a certificate on pass and notify.

        Storage failures never undo the in-memory result; the student is
        warned through a notification instead.
        """
        result = session.result
        if result is None:
            raise QuizError("Session has not been submitted", "quiz_not_submitted")

        attempt = QuizAttempt(
            student_id=session.student_id,
            quiz_id=session.quiz.id,
            course_id=session.quiz.course_id,
            correct_count=result.correct_count,
            total_questions=result.total_questions,
            score_percent=result.score_percent,
            passed=result.passed,
            timed_out=result.timed_out,
            time_taken_seconds=session.elapsed_seconds,
            completed_at=session.submitted_at,
        )

        attempt_saved = True
        try:
            await self.record_attempt(attempt)
        except Exception as e:
            attempt_saved = False
            logger.error(
                "quiz_attempt_save_failed",
                quiz_id=str(session.quiz.id),
                error=str(e),
            )
            await self._warn(
                session.student_id,
                "Quiz result not saved",
                f"Your result for {session.quiz.title} could not be saved.",
            )

        certificate_id = None
        if result.passed:
            certificate_id = await self._issue_certificate(session, result)

        await self._notify_result(session, result)

        return QuizOutcome(
            result=result,
            attempt_saved=attempt_saved,
            certificate_id=certificate_id,
        )

    async def _issue_certificate(
        self, session: QuizSession, result: QuizResult
    ) -> str | None:
        if self.certificates is None or self.course_service is None:
            return None
        try:
            course = await self.course_service.get_course(session.quiz.course_id)
            if course is None:
                return None
            certificate = await self.certificates.issue_certificate(
                student_id=session.student_id,
                student_name=session.student_name,
                course=course,
                quiz_id=session.quiz.id,
                score_percent=result.score_percent,
            )
        except Exception as e:
            logger.error(
                "certificate_issue_failed",
                quiz_id=str(session.quiz.id),
                course_id=str(session.quiz.course_id),
                error=str(e),
            )
            await self._warn(
                session.student_id,
                "Certificate not issued",
                "You passed, but your certificate could not be issued. "
                "Please try again later.",
            )
            return None
        return certificate.certificate_id

    async def _notify_result(self, session: QuizSession, result: QuizResult) -> None:
        if self.notifications is None:
            return
        prefix = "Time is up. " if result.timed_out else ""
        if result.passed:
            await self.notifications.success(
                session.student_id,
                "Quiz passed",
                f"{prefix}You scored {result.score_percent}% on {session.quiz.title}.",
            )
        else:
            await self.notifications.warn(
                session.student_id,
                "Quiz not passed",
                f"{prefix}You scored {result.score_percent}% on "
                f"{session.quiz.title}; {result.passing_score}% is needed to pass.",
            )

    async def _warn(self, user_id: UUID, title: str, message: str) -> None:
        if self.notifications is not None:
            await self.notifications.warn(user_id, title, message)

    # ==========================================================================
    # Attempts
    # ==========================================================================

    async def record_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        await self.session.aexecute(
            self._insert_attempt,
            (
                attempt.student_id,
                attempt.quiz_id,
                attempt.completed_at,
                attempt.attempt_id,
                attempt.course_id,
                attempt.correct_count,
                attempt.total_questions,
                attempt.score_percent,
                attempt.passed,
                attempt.timed_out,
                attempt.time_taken_seconds,
            ),
        )
        logger.info(
            "quiz_attempt_recorded",
            attempt_id=str(attempt.attempt_id),
            quiz_id=str(attempt.quiz_id),
            passed=attempt.passed,
        )
        return attempt

    async def list_attempts(
        self, student_id: UUID, quiz_id: UUID | None = None
    ) -> list[QuizAttempt]:
        """Attempts of a student, newest first."""
        if quiz_id is not None:
            rows = await self.session.aexecute(
                self._get_quiz_attempts, (student_id, quiz_id)
            )
        else:
            rows = await self.session.aexecute(self._get_attempts, (student_id,))
        attempts = [QuizAttempt.from_row(row) for row in rows]
        return sorted(attempts, key=lambda a: a.completed_at, reverse=True)

    async def get_passed_quiz_ids(self, student_id: UUID, course_id: UUID) -> set[UUID]:
        attempts = await self.list_attempts(student_id)
        return {a.quiz_id for a in attempts if a.course_id == course_id and a.passed}
