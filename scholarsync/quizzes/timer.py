"""Countdown task for a quiz attempt."""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from scholarsync.core.context import SessionContext

from .session import QuizSession


logger = structlog.get_logger(__name__)

ExpiryCallback = Callable[[QuizSession], Awaitable[object]]


class QuizTimer:
    """Calls :meth:`QuizSession.tick` once per interval on the event loop.

    When a tick ends the attempt, ``on_expired`` is awaited so the timeout
    is finalised exactly like a manual submission. The task exits on its own
    once the session leaves ``in_progress`` and is cancelled by the owner on
    submit, discard or shutdown.
    """

    def __init__(
        self,
        session: QuizSession,
        on_expired: ExpiryCallback | None = None,
        interval: float = 1.0,
    ):
        self.session = session
        self.on_expired = on_expired
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"quiz-timer-{self.session.session_id}"
        )

    def cancel(self) -> None:
        """Stop the countdown; a no-op from inside the timer's own task."""
        if not self.running:
            return
        if asyncio.current_task() is self._task:
            return
        self._task.cancel()

    async def _run(self) -> None:
        with SessionContext(self.session.session_id, self.session.student_id):
            while self.session.is_in_progress:
                await asyncio.sleep(self.interval)
                if not self.session.tick():
                    continue

                logger.info("quiz_timer_expired", quiz_id=str(self.session.quiz.id))
                if self.on_expired is None:
                    return
                try:
                    await self.on_expired(self.session)
                except Exception:
                    logger.exception(
                        "quiz_timeout_finalize_failed",
                        quiz_id=str(self.session.quiz.id),
                    )
                return
