"""Watch detection for lecture videos.

A :class:`CourseViewingSession` follows one student watching one course.
Playback reports go through a one-shot :class:`WatchTracker` per lecture;
the first report past the threshold persists the watched flag, and later
crossings in the same session do nothing.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import structlog

from scholarsync.core.context import SessionContext

from .models import COMPLETION_THRESHOLD


if TYPE_CHECKING:
    from scholarsync.courses.models import Course, Lecture
    from scholarsync.notifications.service import NotificationService

    from .service import ProgressService

logger = structlog.get_logger(__name__)


class WatchTracker:
    """Fires once when playback first reaches the threshold."""

    def __init__(
        self,
        lecture_id: UUID,
        completed: bool = False,
        threshold: float = COMPLETION_THRESHOLD,
    ):
        self.lecture_id = lecture_id
        self.completed = completed
        self.threshold = threshold

    def report(self, position: float, duration: float) -> bool:
        """Returns True only for the report that crosses the threshold."""
        if self.completed or duration <= 0:
            return False
        if position / duration < self.threshold:
            return False
        self.completed = True
        return True


@dataclass(frozen=True)
class VideoProgressUpdate:
    """What one playback report did."""

    lecture_id: UUID
    tracked: bool
    completed_now: bool
    watched: bool
    saved: bool = True


class UnknownLectureError(Exception):
    def __init__(self, lecture_id: UUID):
        self.lecture_id = lecture_id
        super().__init__(f"Lecture {lecture_id} is not part of this course")


class CourseViewingSession:
    """One student's viewing session of a course.

    Holds a read-through cache of the student's watched lecture ids for the
    course, loaded on first use and dropped by :meth:`refresh`. Lectures
    whose video is hosted externally are not tracked, since their playback
    position is not observable.
    """

    def __init__(
        self,
        course: "Course",
        lectures: list["Lecture"],
        student_id: UUID,
        store: "ProgressService",
        notifications: "NotificationService | None" = None,
        session_id: UUID | None = None,
    ):
        self.session_id = session_id or uuid4()
        self.course = course
        self.lectures = {lecture.id: lecture for lecture in lectures}
        self.student_id = student_id
        self.store = store
        self.notifications = notifications
        self._watched: set[UUID] | None = None
        self._trackers: dict[UUID, WatchTracker] = {}

    @property
    def loaded(self) -> bool:
        return self._watched is not None

    async def load(self) -> set[UUID]:
        """Watched lecture ids, read from storage once per cache lifetime."""
        if self._watched is None:
            watched = await self.store.get_watched_lecture_ids(
                self.student_id, self.course.id
            )
            self._watched = {lid for lid in watched if lid in self.lectures}
            self._trackers = {
                lecture_id: WatchTracker(lecture_id, completed=lecture_id in self._watched)
                for lecture_id, lecture in self.lectures.items()
                if not lecture.is_externally_hosted
            }
            logger.debug(
                "viewing_session_loaded",
                course_id=str(self.course.id),
                watched=len(self._watched),
                tracked=len(self._trackers),
            )
        return set(self._watched)

    async def refresh(self) -> set[UUID]:
        """Reload from storage and re-seed the trackers.

        A lecture that completed locally but failed to persist is not
        watched in storage, so its tracker is reset and it may fire again.
        """
        self._watched = None
        return await self.load()

    def is_watched(self, lecture_id: UUID) -> bool:
        tracker = self._trackers.get(lecture_id)
        if tracker is not None and tracker.completed:
            return True
        return self._watched is not None and lecture_id in self._watched

    async def on_video_progress(
        self, lecture_id: UUID, position: float, duration: float
    ) -> VideoProgressUpdate:
        """Handle one playback report.

        Raises:
            UnknownLectureError: If the lecture is not in this course
        """
        if lecture_id not in self.lectures:
            raise UnknownLectureError(lecture_id)
        await self.load()

        tracker = self._trackers.get(lecture_id)
        if tracker is None:
            return VideoProgressUpdate(
                lecture_id=lecture_id,
                tracked=False,
                completed_now=False,
                watched=self.is_watched(lecture_id),
            )

        if not tracker.report(position, duration):
            return VideoProgressUpdate(
                lecture_id=lecture_id,
                tracked=True,
                completed_now=False,
                watched=tracker.completed,
            )

        with SessionContext(self.session_id, self.student_id):
            logger.info(
                "lecture_watched",
                course_id=str(self.course.id),
                lecture_id=str(lecture_id),
            )
            saved = await self._persist_watched(lecture_id)

        return VideoProgressUpdate(
            lecture_id=lecture_id,
            tracked=True,
            completed_now=True,
            watched=True,
            saved=saved,
        )

    async def _persist_watched(self, lecture_id: UUID) -> bool:
        try:
            await self.store.mark_watched(self.student_id, lecture_id, self.course.id)
        except Exception as e:
            logger.error(
                "watched_flag_save_failed",
                lecture_id=str(lecture_id),
                error=str(e),
            )
            if self.notifications is not None:
                title = self.lectures[lecture_id].title
                await self.notifications.warn(
                    self.student_id,
                    "Progress not saved",
                    f"We could not save that you watched {title}. "
                    "It will be retried the next time you open the course.",
                )
            return False

        if self._watched is not None:
            self._watched.add(lecture_id)
        return True

    def __repr__(self) -> str:
        return (
            f"<CourseViewingSession {self.session_id} course={self.course.id} "
            f"student={self.student_id}>"
        )
