"""Progress service layer.

Handles:
- Watched flags per student and lecture
- Course completion, always recomputed from storage
- Viewing sessions that turn playback reports into watched flags
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from scholarsync.core.sessions import SessionRegistry

from .models import CourseCompletion, VideoProgressEntry
from .tracker import CourseViewingSession


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from scholarsync.courses.service import CourseService
    from scholarsync.notifications.service import NotificationService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ViewingSessionNotFoundError(ProgressError):
    def __init__(self, message: str = "Viewing session not found"):
        super().__init__(message, "viewing_session_not_found")


class ProgressCourseNotFoundError(ProgressError):
    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class LectureNotInCourseError(ProgressError):
    def __init__(self, message: str = "Lecture is not part of this course"):
        super().__init__(message, "lecture_not_found")


def compute_course_completion(
    course_id: UUID, lecture_ids: Iterable[UUID], watched_ids: set[UUID]
) -> CourseCompletion:
    """Completion of a course from its lecture ids and the watched flags.

    A course with no lectures is never complete.
    """
    lecture_ids = set(lecture_ids)
    return CourseCompletion(
        course_id=course_id,
        lectures_watched=len(lecture_ids & watched_ids),
        lectures_total=len(lecture_ids),
    )


# ==============================================================================
# Service
# ==============================================================================


class ProgressService:
    """Service for video progress and course completion."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService | None" = None,
        notifications: "NotificationService | None" = None,
    ):
        """Initialize with Cassandra session and collaborators."""
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.notifications = notifications
        self._viewing_sessions: SessionRegistry[CourseViewingSession] = (
            SessionRegistry("viewing")
        )
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._upsert_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.video_progress
            (student_id, lecture_id, course_id, watched, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._get_student_progress = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.video_progress WHERE student_id = ?"
        )

    # ==========================================================================
    # Watched Flags
    # ==========================================================================

    async def _set_watched(
        self, student_id: UUID, lecture_id: UUID, course_id: UUID, watched: bool
    ) -> VideoProgressEntry:
        entry = VideoProgressEntry(
            student_id=student_id,
            lecture_id=lecture_id,
            course_id=course_id,
            watched=watched,
            updated_at=datetime.now(UTC),
        )
        await self.session.aexecute(
            self._upsert_progress,
            (
                entry.student_id,
                entry.lecture_id,
                entry.course_id,
                entry.watched,
                entry.updated_at,
            ),
        )
        return entry

    async def mark_watched(
        self, student_id: UUID, lecture_id: UUID, course_id: UUID
    ) -> VideoProgressEntry:
        """Upsert the watched flag. Repeating it is harmless."""
        entry = await self._set_watched(student_id, lecture_id, course_id, True)
        logger.info(
            "lecture_marked_watched",
            student_id=str(student_id),
            lecture_id=str(lecture_id),
            course_id=str(course_id),
        )
        return entry

    async def clear_watched(
        self, student_id: UUID, lecture_id: UUID, course_id: UUID
    ) -> VideoProgressEntry:
        """Reset a lecture to unwatched, so it can be rewatched."""
        entry = await self._set_watched(student_id, lecture_id, course_id, False)
        logger.info(
            "lecture_watched_cleared",
            student_id=str(student_id),
            lecture_id=str(lecture_id),
            course_id=str(course_id),
        )
        return entry

    async def get_progress_entries(
        self, student_id: UUID, course_id: UUID | None = None
    ) -> list[VideoProgressEntry]:
        rows = await self.session.aexecute(self._get_student_progress, (student_id,))
        entries = [VideoProgressEntry.from_row(row) for row in rows]
        if course_id is not None:
            entries = [e for e in entries if e.course_id == course_id]
        return entries

    async def get_watched_lecture_ids(
        self, student_id: UUID, course_id: UUID | None = None
    ) -> set[UUID]:
        entries = await self.get_progress_entries(student_id, course_id)
        return {e.lecture_id for e in entries if e.watched}

    # ==========================================================================
    # Completion
    # ==========================================================================

    async def get_course_completion(
        self, student_id: UUID, course_id: UUID
    ) -> CourseCompletion:
        """Recompute completion from storage.

        Raises:
            ProgressCourseNotFoundError: If the course does not exist
        """
        course = await self._require_course_service().get_course(course_id)
        if not course:
            raise ProgressCourseNotFoundError
        lectures = await self._require_course_service().list_lectures(course_id)
        watched = await self.get_watched_lecture_ids(student_id)
        completion = compute_course_completion(
            course_id, (lecture.id for lecture in lectures), watched
        )
        logger.debug(
            "course_completion_computed",
            course_id=str(course_id),
            watched=completion.lectures_watched,
            total=completion.lectures_total,
            completed=completion.completed,
        )
        return completion

    def _require_course_service(self) -> "CourseService":
        if self.course_service is None:
            raise ProgressError("Course service not configured", "not_configured")
        return self.course_service

    # ==========================================================================
    # Viewing Sessions
    # ==========================================================================

    async def open_viewing_session(
        self, course_id: UUID, student_id: UUID
    ) -> CourseViewingSession:
        """Open a viewing session with its watched cache loaded.

        A student keeps one viewing session per course; opening another
        replaces the earlier one.

        Raises:
            ProgressCourseNotFoundError: If the course does not exist
        """
        course_service = self._require_course_service()
        course = await course_service.get_course(course_id)
        if not course:
            raise ProgressCourseNotFoundError
        lectures = await course_service.list_lectures(course_id)

        viewing = CourseViewingSession(
            course=course,
            lectures=lectures,
            student_id=student_id,
            store=self,
            notifications=self.notifications,
        )
        await viewing.load()

        for existing in self._viewing_sessions.values():
            if existing.student_id == student_id and existing.course.id == course_id:
                self.close_viewing_session(existing.session_id, student_id)
        self._viewing_sessions.add(viewing.session_id, student_id, viewing)

        logger.info(
            "viewing_session_opened",
            session_id=str(viewing.session_id),
            course_id=str(course_id),
            student_id=str(student_id),
        )
        return viewing

    def get_viewing_session(
        self, session_id: UUID, student_id: UUID
    ) -> CourseViewingSession | None:
        return self._viewing_sessions.get(session_id, student_id)

    def require_viewing_session(
        self, session_id: UUID, student_id: UUID
    ) -> CourseViewingSession:
        viewing = self.get_viewing_session(session_id, student_id)
        if viewing is None:
            raise ViewingSessionNotFoundError
        return viewing

    def close_viewing_session(self, session_id: UUID, student_id: UUID) -> bool:
        removed = self._viewing_sessions.remove(session_id, student_id)
        if removed is None:
            return False
        logger.info("viewing_session_closed", session_id=str(session_id))
        return True

    @property
    def viewing_session_count(self) -> int:
        return len(self._viewing_sessions)

    def shutdown(self) -> None:
        self._viewing_sessions.clear()
