"""Tests for watch detection and viewing sessions."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from scholarsync.courses.models import Course, Lecture
from scholarsync.progress.tracker import (
    CourseViewingSession,
    UnknownLectureError,
    WatchTracker,
)


class TestWatchTracker:
    """Tests for the one-shot threshold tracker."""

    def test_fires_once_at_threshold(self) -> None:
        tracker = WatchTracker(uuid4())
        assert tracker.report(50, 100) is False
        assert tracker.report(90, 100) is True
        assert tracker.completed is True
        assert tracker.report(95, 100) is False
        assert tracker.report(100, 100) is False

    def test_seeking_back_and_forth_fires_once(self) -> None:
        tracker = WatchTracker(uuid4())
        fired = [tracker.report(position, 100) for position in (91, 10, 95, 5, 92)]
        assert fired == [True, False, False, False, False]
        assert tracker.completed is True

    def test_just_below_threshold(self) -> None:
        tracker = WatchTracker(uuid4())
        assert tracker.report(89.9, 100) is False
        assert tracker.completed is False

    @pytest.mark.parametrize("duration", [0, -1, -120.5])
    def test_non_positive_duration_is_ignored(self, duration: float) -> None:
        tracker = WatchTracker(uuid4())
        assert tracker.report(10, duration) is False
        assert tracker.completed is False

    def test_seeded_as_completed(self) -> None:
        tracker = WatchTracker(uuid4(), completed=True)
        assert tracker.report(100, 100) is False

    def test_custom_threshold(self) -> None:
        tracker = WatchTracker(uuid4(), threshold=0.5)
        assert tracker.report(50, 100) is True


@pytest.fixture
def store() -> Mock:
    store = Mock()
    store.get_watched_lecture_ids = AsyncMock(return_value=set())
    store.mark_watched = AsyncMock()
    return store


@pytest.fixture
def notifications() -> Mock:
    service = Mock()
    service.warn = AsyncMock()
    return service


@pytest.fixture
def viewing(course: Course, lectures: list[Lecture], student, store, notifications):
    return CourseViewingSession(
        course=course,
        lectures=lectures,
        student_id=student.id,
        store=store,
        notifications=notifications,
    )


class TestCourseViewingSession:
    """Tests for playback reports within a viewing session."""

    @pytest.mark.asyncio
    async def test_load_reads_storage_once(self, viewing, store, lectures) -> None:
        store.get_watched_lecture_ids.return_value = {lectures[0].id, uuid4()}

        assert await viewing.load() == {lectures[0].id}
        await viewing.load()

        store.get_watched_lecture_ids.assert_awaited_once()
        assert viewing.is_watched(lectures[0].id)

    @pytest.mark.asyncio
    async def test_crossing_persists_watched_flag(
        self, viewing, store, lectures, course, student
    ) -> None:
        lecture = lectures[0]

        update = await viewing.on_video_progress(lecture.id, 30, 100)
        assert update.completed_now is False
        assert update.watched is False
        store.mark_watched.assert_not_awaited()

        update = await viewing.on_video_progress(lecture.id, 91, 100)
        assert update.tracked is True
        assert update.completed_now is True
        assert update.saved is True
        store.mark_watched.assert_awaited_once_with(student.id, lecture.id, course.id)

        update = await viewing.on_video_progress(lecture.id, 99, 100)
        assert update.completed_now is False
        assert update.watched is True
        store.mark_watched.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_seeking_back_and_forth_persists_once(
        self, viewing, store, lectures
    ) -> None:
        lecture = lectures[0]

        updates = [
            await viewing.on_video_progress(lecture.id, position, 100)
            for position in (91, 10, 95, 5, 92)
        ]

        assert [u.completed_now for u in updates] == [True, False, False, False, False]
        assert all(u.watched for u in updates)
        store.mark_watched.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_already_watched_does_not_fire(self, viewing, store, lectures) -> None:
        store.get_watched_lecture_ids.return_value = {lectures[1].id}

        update = await viewing.on_video_progress(lectures[1].id, 100, 100)

        assert update.completed_now is False
        assert update.watched is True
        store.mark_watched.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_external_lecture_is_not_tracked(self, viewing, store, lectures) -> None:
        external = lectures[2]

        update = await viewing.on_video_progress(external.id, 100, 100)

        assert update.tracked is False
        assert update.completed_now is False
        assert update.watched is False
        store.mark_watched.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_lecture(self, viewing) -> None:
        with pytest.raises(UnknownLectureError):
            await viewing.on_video_progress(uuid4(), 10, 100)

    @pytest.mark.asyncio
    async def test_write_failure_keeps_local_completion_and_warns(
        self, viewing, store, notifications, lectures, student
    ) -> None:
        lecture = lectures[0]
        store.mark_watched.side_effect = RuntimeError("db down")

        update = await viewing.on_video_progress(lecture.id, 95, 100)

        assert update.completed_now is True
        assert update.saved is False
        assert viewing.is_watched(lecture.id) is True
        notifications.warn.assert_awaited_once()
        assert notifications.warn.await_args.args[0] == student.id
        assert notifications.warn.await_args.args[1] == "Progress not saved"

        # No retry within the same session
        update = await viewing.on_video_progress(lecture.id, 99, 100)
        assert update.completed_now is False
        store.mark_watched.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_reconciles_with_storage(
        self, viewing, store, lectures
    ) -> None:
        lecture = lectures[0]
        store.mark_watched.side_effect = RuntimeError("db down")
        await viewing.on_video_progress(lecture.id, 95, 100)

        store.mark_watched.side_effect = None
        assert await viewing.refresh() == set()
        assert viewing.is_watched(lecture.id) is False

        update = await viewing.on_video_progress(lecture.id, 95, 100)
        assert update.completed_now is True
        assert update.saved is True
        assert store.mark_watched.await_count == 2

    @pytest.mark.asyncio
    async def test_refresh_picks_up_other_devices(self, viewing, store, lectures) -> None:
        await viewing.load()
        store.get_watched_lecture_ids.return_value = {lectures[1].id}

        assert await viewing.refresh() == {lectures[1].id}
        assert viewing.is_watched(lectures[1].id)
