"""Course management service layer.

Business logic for:
- Course CRUD (instructors own their courses)
- Lecture CRUD with ordering and resources
- Enrollment and course access checks
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from scholarsync.auth.permissions import can_manage_course

from .models import Course, Enrollment, Lecture, LectureResource
from .schemas import (
    CreateCourseRequest,
    CreateLectureRequest,
    UpdateCourseRequest,
    UpdateLectureRequest,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from scholarsync.auth.schemas import AuthenticatedUser

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseError(Exception):
    """Base course error."""

    def __init__(self, message: str, code: str = "course_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(CourseError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class LectureNotFoundError(CourseError):
    """Lecture not found in the course."""

    def __init__(self, message: str = "Lecture not found"):
        super().__init__(message, "lecture_not_found")


class AlreadyEnrolledError(CourseError):
    """Student already enrolled."""

    def __init__(self, message: str = "Already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class CourseAccessDeniedError(CourseError):
    """Caller is neither enrolled nor managing the course."""

    def __init__(self, message: str = "You do not have access to this course"):
        super().__init__(message, "access_denied")


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Service for courses, lectures and enrollment."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        # Courses
        self._get_course_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._list_courses = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses LIMIT ?"
        )
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, description, category, image_url, instructor_id,
             instructor_name, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_course = self.session.prepare(f"""
            UPDATE {self.keyspace}.courses
            SET title = ?, description = ?, category = ?, image_url = ?,
                updated_at = ?
            WHERE id = ?
        """)
        self._delete_course = self.session.prepare(
            f"DELETE FROM {self.keyspace}.courses WHERE id = ?"
        )

        self._insert_course_by_instructor = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses_by_instructor
            (instructor_id, created_at, course_id, title)
            VALUES (?, ?, ?, ?)
        """)
        self._delete_course_by_instructor = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.courses_by_instructor
            WHERE instructor_id = ? AND created_at = ? AND course_id = ?
        """)
        self._get_courses_by_instructor = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses_by_instructor WHERE instructor_id = ?"
        )

        # Lectures
        self._get_lectures = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lectures WHERE course_id = ?"
        )
        self._get_lecture = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lectures WHERE course_id = ? AND lecture_id = ?"
        )
        self._upsert_lecture = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lectures
            (course_id, lecture_id, position, title, description, video_url,
             duration_seconds, resources, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_lecture = self.session.prepare(
            f"DELETE FROM {self.keyspace}.lectures WHERE course_id = ? AND lecture_id = ?"
        )
        self._delete_course_lectures = self.session.prepare(
            f"DELETE FROM {self.keyspace}.lectures WHERE course_id = ?"
        )

        # Enrollments
        self._get_enrollment = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments WHERE course_id = ? AND student_id = ?"
        )
        self._get_course_enrollments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments WHERE course_id = ?"
        )
        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments (course_id, student_id, enrolled_at)
            VALUES (?, ?, ?)
        """)
        self._insert_enrollment_by_student = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_student
            (student_id, course_id, enrolled_at)
            VALUES (?, ?, ?)
        """)
        self._get_student_enrollments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments_by_student WHERE student_id = ?"
        )
        self._delete_course_enrollments = self.session.prepare(
            f"DELETE FROM {self.keyspace}.enrollments WHERE course_id = ?"
        )
        self._delete_enrollment_by_student = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.enrollments_by_student
            WHERE student_id = ? AND course_id = ?
        """)

    # ==========================================================================
    # Courses
    # ==========================================================================

    async def create_course(
        self,
        data: CreateCourseRequest,
        instructor_id: UUID,
        instructor_name: str,
    ) -> Course:
        """Create a course owned by the given instructor."""
        course = Course(
            title=data.title,
            description=data.description,
            category=data.category,
            image_url=data.image_url,
            instructor_id=instructor_id,
            instructor_name=instructor_name,
        )

        await self.session.aexecute(
            self._insert_course,
            (
                course.id,
                course.title,
                course.description,
                course.category,
                course.image_url,
                course.instructor_id,
                course.instructor_name,
                course.created_at,
                course.updated_at,
            ),
        )
        await self.session.aexecute(
            self._insert_course_by_instructor,
            (instructor_id, course.created_at, course.id, course.title),
        )

        logger.info(
            "course_created",
            course_id=str(course.id),
            instructor_id=str(instructor_id),
        )
        return course

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        rows = await self.session.aexecute(self._get_course_by_id, (course_id,))
        row = rows.one()
        return Course.from_row(row) if row else None

    async def list_courses(self, limit: int = 100) -> list[Course]:
        """List the course catalog, newest first."""
        rows = await self.session.aexecute(self._list_courses, (limit,))
        courses = [Course.from_row(row) for row in rows]
        return sorted(courses, key=lambda c: c.created_at, reverse=True)

    async def list_instructor_courses(self, instructor_id: UUID) -> list[Course]:
        """List courses taught by an instructor, newest first."""
        rows = await self.session.aexecute(
            self._get_courses_by_instructor, (instructor_id,)
        )
        courses = []
        for row in rows:
            course = await self.get_course(row.course_id)
            if course:
                courses.append(course)
        return courses

    async def update_course(self, course_id: UUID, data: UpdateCourseRequest) -> Course:
        """Update course fields that were provided.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = await self.get_course(course_id)
        if not course:
            raise CourseNotFoundError

        if data.title is not None:
            course.title = data.title.strip()
        if data.description is not None:
            course.description = data.description
        if data.category is not None:
            course.category = data.category
        if data.image_url is not None:
            course.image_url = data.image_url
        course.updated_at = datetime.now(UTC)

        await self.session.aexecute(
            self._update_course,
            (
                course.title,
                course.description,
                course.category,
                course.image_url,
                course.updated_at,
                course_id,
            ),
        )
        logger.info("course_updated", course_id=str(course_id))
        return course

    async def delete_course(self, course_id: UUID) -> None:
        """Delete a course with its lectures and enrollments.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = await self.get_course(course_id)
        if not course:
            raise CourseNotFoundError

        enrollments = await self.session.aexecute(
            self._get_course_enrollments, (course_id,)
        )
        for row in enrollments:
            await self.session.aexecute(
                self._delete_enrollment_by_student, (row.student_id, course_id)
            )
        await self.session.aexecute(self._delete_course_enrollments, (course_id,))
        await self.session.aexecute(self._delete_course_lectures, (course_id,))
        await self.session.aexecute(
            self._delete_course_by_instructor,
            (course.instructor_id, course.created_at, course_id),
        )
        await self.session.aexecute(self._delete_course, (course_id,))

        logger.info("course_deleted", course_id=str(course_id))

    # ==========================================================================
    # Lectures
    # ==========================================================================

    async def list_lectures(self, course_id: UUID) -> list[Lecture]:
        """Get a course's lectures in presentation order."""
        rows = await self.session.aexecute(self._get_lectures, (course_id,))
        lectures = [Lecture.from_row(row) for row in rows]
        return sorted(lectures, key=lambda lec: (lec.position, lec.created_at))

    async def get_lecture(self, course_id: UUID, lecture_id: UUID) -> Lecture | None:
        rows = await self.session.aexecute(self._get_lecture, (course_id, lecture_id))
        row = rows.one()
        return Lecture.from_row(row) if row else None

    async def add_lecture(self, course_id: UUID, data: CreateLectureRequest) -> Lecture:
        """Append (or insert at ``data.position``) a lecture.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        if not await self.get_course(course_id):
            raise CourseNotFoundError

        position = data.position
        if position is None:
            existing = await self.list_lectures(course_id)
            position = existing[-1].position + 1 if existing else 0

        lecture = Lecture(
            course_id=course_id,
            position=position,
            title=data.title,
            description=data.description,
            video_url=data.video_url,
            duration_seconds=data.duration_seconds,
            resources=[
                LectureResource(
                    name=r.name, file_url=r.file_url, type=r.type.value, id=r.id
                )
                for r in data.resources
            ],
        )
        await self._save_lecture(lecture)

        logger.info(
            "lecture_added",
            course_id=str(course_id),
            lecture_id=str(lecture.id),
            position=position,
        )
        return lecture

    async def update_lecture(
        self,
        course_id: UUID,
        lecture_id: UUID,
        data: UpdateLectureRequest,
    ) -> Lecture:
        """Update lecture fields that were provided.

        Raises:
            LectureNotFoundError: If the lecture is not part of the course
        """
        lecture = await self.get_lecture(course_id, lecture_id)
        if not lecture:
            raise LectureNotFoundError

        if data.title is not None:
            lecture.title = data.title.strip()
        if data.description is not None:
            lecture.description = data.description
        if data.video_url is not None:
            lecture.video_url = data.video_url
        if data.duration_seconds is not None:
            lecture.duration_seconds = data.duration_seconds
        if data.position is not None:
            lecture.position = data.position
        if data.resources is not None:
            lecture.resources = [
                LectureResource(
                    name=r.name, file_url=r.file_url, type=r.type.value, id=r.id
                )
                for r in data.resources
            ]
        lecture.updated_at = datetime.now(UTC)

        await self._save_lecture(lecture)
        logger.info(
            "lecture_updated", course_id=str(course_id), lecture_id=str(lecture_id)
        )
        return lecture

    async def delete_lecture(self, course_id: UUID, lecture_id: UUID) -> None:
        """Delete a lecture.

        Raises:
            LectureNotFoundError: If the lecture is not part of the course
        """
        if not await self.get_lecture(course_id, lecture_id):
            raise LectureNotFoundError
        await self.session.aexecute(self._delete_lecture, (course_id, lecture_id))
        logger.info(
            "lecture_deleted", course_id=str(course_id), lecture_id=str(lecture_id)
        )

    async def _save_lecture(self, lecture: Lecture) -> None:
        await self.session.aexecute(
            self._upsert_lecture,
            (
                lecture.course_id,
                lecture.id,
                lecture.position,
                lecture.title,
                lecture.description,
                lecture.video_url,
                lecture.duration_seconds,
                [r.to_map() for r in lecture.resources],
                lecture.created_at,
                lecture.updated_at,
            ),
        )

    # ==========================================================================
    # Enrollment
    # ==========================================================================

    async def enroll(self, course_id: UUID, student_id: UUID) -> Enrollment:
        """Enroll a student in a course.

        Raises:
            CourseNotFoundError: If the course does not exist
            AlreadyEnrolledError: If the student is already enrolled
        """
        if not await self.get_course(course_id):
            raise CourseNotFoundError
        if await self.is_enrolled(course_id, student_id):
            raise AlreadyEnrolledError

        enrollment = Enrollment(course_id=course_id, student_id=student_id)

        # Dual write: main table + lookup table
        await self.session.aexecute(
            self._insert_enrollment,
            (course_id, student_id, enrollment.enrolled_at),
        )
        await self.session.aexecute(
            self._insert_enrollment_by_student,
            (student_id, course_id, enrollment.enrolled_at),
        )

        logger.info(
            "student_enrolled",
            course_id=str(course_id),
            student_id=str(student_id),
        )
        return enrollment

    async def is_enrolled(self, course_id: UUID, student_id: UUID) -> bool:
        rows = await self.session.aexecute(
            self._get_enrollment, (course_id, student_id)
        )
        return rows.one() is not None

    async def list_enrolled_courses(self, student_id: UUID) -> list[Course]:
        """Courses the student is enrolled in."""
        rows = await self.session.aexecute(self._get_student_enrollments, (student_id,))
        courses = []
        for row in rows:
            course = await self.get_course(row.course_id)
            if course:
                courses.append(course)
        return courses

    async def has_access(self, course: Course, user: "AuthenticatedUser") -> bool:
        """Instructor of the course, admin, or enrolled student."""
        if can_manage_course(str(user.id), user.role, str(course.instructor_id)):
            return True
        return await self.is_enrolled(course.id, user.id)

    async def require_access(
        self, course_id: UUID, user: "AuthenticatedUser"
    ) -> Course:
        """Load a course and check the caller may participate in it.

        Raises:
            CourseNotFoundError: If the course does not exist
            CourseAccessDeniedError: If the caller has no access
        """
        course = await self.get_course(course_id)
        if not course:
            raise CourseNotFoundError
        if not await self.has_access(course, user):
            raise CourseAccessDeniedError
        return course
