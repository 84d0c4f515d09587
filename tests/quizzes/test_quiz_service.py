"""Tests for QuizService session lifecycle and finalisation."""

import asyncio
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from scholarsync.courses.models import Course
from scholarsync.quizzes.models import Quiz
from scholarsync.quizzes.service import (
    EmptyQuizError,
    InvalidQuizDataError,
    QuizIncompleteError,
    QuizNotFoundError,
    QuizService,
    QuizSessionNotFoundError,
)


@pytest.fixture
def notifications() -> Mock:
    service = Mock()
    service.success = AsyncMock()
    service.warn = AsyncMock()
    return service


@pytest.fixture
def certificates() -> Mock:
    service = Mock()
    service.issue_certificate = AsyncMock(
        return_value=Mock(certificate_id="CERT-7QK2M9XA")
    )
    return service


@pytest.fixture
def quiz_service(mock_session, quiz: Quiz, course: Course, notifications, certificates):
    course_service = Mock()
    course_service.get_course = AsyncMock(return_value=course)
    service = QuizService(
        mock_session,
        "test_keyspace",
        notifications=notifications,
        certificates=certificates,
        course_service=course_service,
        timer_interval=0.005,
    )
    service.get_quiz = AsyncMock(return_value=quiz)
    service.record_attempt = AsyncMock(side_effect=lambda attempt: attempt)
    return service


def answer(session, answers: list[int]) -> None:
    for index, option in enumerate(answers):
        session.select_answer(index, option)


async def wait_until(predicate, timeout: float = 3.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


class TestStartSession:
    """Tests for starting attempts."""

    @pytest.mark.asyncio
    async def test_start_registers_session_and_timer(self, quiz_service, quiz):
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id, "Ana Souza")

        assert quiz_service.get_session(session.session_id, student_id) is session
        assert quiz_service.active_session_count == 1
        assert quiz_service._timers[session.session_id].running
        await quiz_service.shutdown()

    @pytest.mark.asyncio
    async def test_unknown_quiz(self, quiz_service):
        quiz_service.get_quiz = AsyncMock(return_value=None)
        with pytest.raises(QuizNotFoundError):
            await quiz_service.start_session(uuid4(), uuid4())

    @pytest.mark.asyncio
    async def test_quiz_without_questions(self, quiz_service, course):
        quiz_service.get_quiz = AsyncMock(
            return_value=Quiz(course_id=course.id, title="Empty")
        )
        with pytest.raises(EmptyQuizError):
            await quiz_service.start_session(uuid4(), uuid4())

    @pytest.mark.asyncio
    async def test_restart_discards_previous_attempt(self, quiz_service, quiz):
        student_id = uuid4()
        first = await quiz_service.start_session(quiz.id, student_id)
        second = await quiz_service.start_session(quiz.id, student_id)

        assert quiz_service.get_session(first.session_id, student_id) is None
        assert quiz_service.get_session(second.session_id, student_id) is second
        assert first.session_id not in quiz_service._timers
        await quiz_service.shutdown()

    @pytest.mark.asyncio
    async def test_sessions_are_owner_scoped(self, quiz_service, quiz):
        session = await quiz_service.start_session(quiz.id, uuid4())
        with pytest.raises(QuizSessionNotFoundError):
            quiz_service.require_session(session.session_id, uuid4())
        await quiz_service.shutdown()


class TestLoadQuiz:
    """Quizzes read back from storage."""

    def quiz_row(self, course):
        return Mock(
            id=uuid4(),
            course_id=course.id,
            title="Basics",
            description=None,
            passing_score=70,
            time_limit_minutes=None,
            created_by=None,
            created_at=None,
        )

    def question_row(self, index):
        return Mock(
            question_id=uuid4(),
            text="Median of 1, 2, 9?",
            options=["1", "2", "9"],
            correct_option_index=index,
        )

    @pytest.mark.asyncio
    async def test_loads_questions(self, mock_session, result, course):
        mock_session.aexecute.side_effect = [
            result([self.quiz_row(course)]),
            result([self.question_row(1)]),
        ]
        service = QuizService(mock_session, "test_keyspace")

        quiz = await service.get_quiz(uuid4())

        assert quiz.question_count == 1
        assert quiz.questions[0].correct_option_index == 1

    @pytest.mark.asyncio
    async def test_corrupt_answer_key_is_rejected(self, mock_session, result, course):
        mock_session.aexecute.side_effect = [
            result([self.quiz_row(course)]),
            result([self.question_row(7)]),
        ]
        service = QuizService(mock_session, "test_keyspace")

        with pytest.raises(InvalidQuizDataError):
            await service.get_quiz(uuid4())


class TestSubmitSession:
    """Tests for manual submission and its side effects."""

    @pytest.mark.asyncio
    async def test_incomplete_submit_is_rejected(self, quiz_service, quiz):
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        answer(session, [1, 0])

        with pytest.raises(QuizIncompleteError):
            await quiz_service.submit_session(session.session_id, student_id)

        assert session.is_in_progress
        quiz_service.record_attempt.assert_not_awaited()
        await quiz_service.shutdown()

    @pytest.mark.asyncio
    async def test_pass_records_attempt_and_issues_certificate(
        self, quiz_service, quiz, certificates, notifications
    ):
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id, "Ana Souza")
        timer = quiz_service._timers[session.session_id]
        answer(session, [1, 0, 2])

        outcome = await quiz_service.submit_session(session.session_id, student_id)

        assert outcome.result.score_percent == 100
        assert outcome.result.passed is True
        assert outcome.attempt_saved is True
        assert outcome.certificate_id == "CERT-7QK2M9XA"
        attempt = quiz_service.record_attempt.await_args.args[0]
        assert attempt.student_id == student_id
        assert attempt.quiz_id == quiz.id
        assert attempt.passed is True
        certificates.issue_certificate.assert_awaited_once()
        notifications.success.assert_awaited_once()
        notifications.warn.assert_not_awaited()

        await asyncio.sleep(0.02)
        assert timer.running is False
        assert session.session_id not in quiz_service._timers

    @pytest.mark.asyncio
    async def test_fail_does_not_issue_certificate(
        self, quiz_service, quiz, certificates, notifications
    ):
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        answer(session, [1, 0, 0])

        outcome = await quiz_service.submit_session(session.session_id, student_id)

        assert outcome.result.score_percent == 67
        assert outcome.result.passed is False
        assert outcome.certificate_id is None
        certificates.issue_certificate.assert_not_awaited()
        notifications.warn.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_attempt_save_failure_keeps_result_and_warns(
        self, quiz_service, quiz, notifications
    ):
        quiz_service.record_attempt = AsyncMock(side_effect=RuntimeError("db down"))
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        answer(session, [1, 0, 2])

        outcome = await quiz_service.submit_session(session.session_id, student_id)

        assert outcome.attempt_saved is False
        assert outcome.result.passed is True
        assert session.is_submitted
        titles = [call.args[1] for call in notifications.warn.await_args_list]
        assert "Quiz result not saved" in titles

    @pytest.mark.asyncio
    async def test_certificate_failure_is_reported(
        self, quiz_service, quiz, certificates, notifications
    ):
        certificates.issue_certificate = AsyncMock(side_effect=RuntimeError("boom"))
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        answer(session, [1, 0, 2])

        outcome = await quiz_service.submit_session(session.session_id, student_id)

        assert outcome.certificate_id is None
        assert outcome.attempt_saved is True
        titles = [call.args[1] for call in notifications.warn.await_args_list]
        assert "Certificate not issued" in titles

    @pytest.mark.asyncio
    async def test_repeated_submit_returns_first_outcome(self, quiz_service, quiz):
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        answer(session, [1, 0, 2])

        first = await quiz_service.submit_session(session.session_id, student_id)
        second = await quiz_service.submit_session(session.session_id, student_id)

        assert first is second
        quiz_service.record_attempt.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_outcome(self, quiz_service, quiz):
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        assert await quiz_service.get_outcome(session.session_id, student_id) is None

        answer(session, [1, 0, 2])
        outcome = await quiz_service.submit_session(session.session_id, student_id)
        assert await quiz_service.get_outcome(session.session_id, student_id) is outcome

    @pytest.mark.asyncio
    async def test_cancelled_submit_still_finalises(
        self, quiz_service, quiz, certificates
    ):
        """A caller going away mid-submit does not abort recording."""
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        answer(session, [1, 0, 2])

        release = asyncio.Event()

        async def slow_record(attempt):
            await release.wait()
            return attempt

        quiz_service.record_attempt = AsyncMock(side_effect=slow_record)

        request = asyncio.create_task(
            quiz_service.submit_session(session.session_id, student_id)
        )
        await wait_until(lambda: quiz_service.record_attempt.await_count == 1)
        request.cancel()
        with pytest.raises(asyncio.CancelledError):
            await request

        release.set()
        outcome = await quiz_service.get_outcome(session.session_id, student_id)

        assert outcome.result.correct_count == 3
        assert outcome.attempt_saved is True
        certificates.issue_certificate.assert_awaited_once()
        quiz_service.record_attempt.assert_awaited_once()


class TestTimeout:
    """The countdown finalises the attempt like a manual submit."""

    @pytest.mark.asyncio
    async def test_timeout_records_attempt_once(self, quiz_service, quiz, notifications):
        quiz.time_limit_minutes = 1
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        answer(session, [1])

        await wait_until(lambda: quiz_service.record_attempt.await_count == 1)
        outcome = await quiz_service.submit_session(session.session_id, student_id)

        assert session.is_submitted
        assert outcome.result.timed_out is True
        assert outcome.result.correct_count == 1
        assert outcome.result.passed is False
        quiz_service.record_attempt.assert_awaited_once()
        message = notifications.warn.await_args.args[2]
        assert message.startswith("Time is up.")


class TestDiscard:
    """Tests for discarding sessions."""

    @pytest.mark.asyncio
    async def test_discard_stops_timer(self, quiz_service, quiz):
        student_id = uuid4()
        session = await quiz_service.start_session(quiz.id, student_id)
        timer = quiz_service._timers[session.session_id]

        assert quiz_service.discard_session(session.session_id, student_id) is True
        await asyncio.sleep(0.02)

        assert timer.running is False
        assert quiz_service.get_session(session.session_id, student_id) is None
        assert quiz_service.active_session_count == 0

    @pytest.mark.asyncio
    async def test_discard_requires_owner(self, quiz_service, quiz):
        session = await quiz_service.start_session(quiz.id, uuid4())
        assert quiz_service.discard_session(session.session_id, uuid4()) is False
        await quiz_service.shutdown()


class TestAttempts:
    """Tests for attempt history queries."""

    @pytest.mark.asyncio
    async def test_passed_quiz_ids_filters_course_and_result(
        self, mock_session, result, course
    ):
        service = QuizService(mock_session, "test_keyspace")
        student_id = uuid4()
        passed_quiz, failed_quiz, other_course_quiz = uuid4(), uuid4(), uuid4()

        def row(quiz_id, course_id, passed):
            return Mock(
                attempt_id=uuid4(),
                student_id=student_id,
                quiz_id=quiz_id,
                course_id=course_id,
                correct_count=1,
                total_questions=1,
                score_percent=100 if passed else 0,
                passed=passed,
                timed_out=False,
                time_taken_seconds=30,
                completed_at=None,
            )

        mock_session.aexecute.return_value = result(
            [
                row(passed_quiz, course.id, True),
                row(failed_quiz, course.id, False),
                row(other_course_quiz, uuid4(), True),
            ]
        )

        assert await service.get_passed_quiz_ids(student_id, course.id) == {passed_quiz}
