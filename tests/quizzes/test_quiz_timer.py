"""Tests for the quiz countdown task."""

import asyncio
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from scholarsync.quizzes.models import Quiz
from scholarsync.quizzes.session import QuizSession
from scholarsync.quizzes.timer import QuizTimer


async def wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


class TestQuizTimer:
    """Tests for QuizTimer."""

    @pytest.mark.asyncio
    async def test_expiry_submits_and_calls_back(self, quiz: Quiz) -> None:
        session = QuizSession(quiz, uuid4(), time_limit_seconds=3)
        on_expired = AsyncMock()
        timer = QuizTimer(session, on_expired=on_expired, interval=0.01)

        timer.start()
        await wait_until(lambda: not timer.running)

        assert session.is_submitted
        assert session.result.timed_out is True
        on_expired.assert_awaited_once_with(session)

    @pytest.mark.asyncio
    async def test_cancel_stops_countdown(self, quiz: Quiz) -> None:
        session = QuizSession(quiz, uuid4(), time_limit_seconds=1000)
        timer = QuizTimer(session, interval=0.01)

        timer.start()
        await asyncio.sleep(0.05)
        timer.cancel()
        await asyncio.sleep(0.02)
        remaining = session.remaining_seconds

        assert timer.running is False
        await asyncio.sleep(0.05)
        assert session.remaining_seconds == remaining
        assert session.is_in_progress

    @pytest.mark.asyncio
    async def test_exits_after_manual_submit(self, quiz: Quiz) -> None:
        session = QuizSession(quiz, uuid4(), time_limit_seconds=1000)
        on_expired = AsyncMock()
        timer = QuizTimer(session, on_expired=on_expired, interval=0.01)

        timer.start()
        for index, option in enumerate([1, 0, 2]):
            session.select_answer(index, option)
        session.submit()
        await wait_until(lambda: not timer.running)

        on_expired.assert_not_awaited()
        assert session.result.timed_out is False

    @pytest.mark.asyncio
    async def test_callback_failure_is_contained(self, quiz: Quiz) -> None:
        session = QuizSession(quiz, uuid4(), time_limit_seconds=1)
        timer = QuizTimer(
            session,
            on_expired=AsyncMock(side_effect=RuntimeError("db down")),
            interval=0.01,
        )

        timer.start()
        await wait_until(lambda: not timer.running)

        assert session.is_submitted
        assert timer._task.exception() is None
