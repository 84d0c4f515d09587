"""Database models for courses, lectures and enrollment.

Cassandra table definitions for:
- Courses: Main course table plus a per-instructor lookup
- Lectures: Ordered lectures partitioned by course
- Enrollments: Membership partitioned by course, mirrored by student

Dual-write pattern: every lookup table is written together with its
main table so that both "students of a course" and "courses of a student"
are single-partition reads.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from urllib.parse import urlparse
from uuid import UUID, uuid4


class ResourceType(str, Enum):
    """Downloadable lecture resource type."""

    PDF = "pdf"
    ASSIGNMENT = "assignment"
    OTHER = "other"


# Video hosts whose players do not report playback position
EXTERNAL_VIDEO_HOSTS = ("youtube.com", "youtu.be")


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def is_externally_hosted(video_url: str | None) -> bool:
    """Whether a video URL points at an embedded third-party player."""
    if not video_url:
        return False
    host = (urlparse(video_url).hostname or "").lower()
    return any(
        host == domain or host.endswith(f".{domain}") for domain in EXTERNAL_VIDEO_HOSTS
    )


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    category TEXT,
    image_url TEXT,
    instructor_id UUID,
    instructor_name TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Lookup: "which courses does this instructor teach?"
COURSES_BY_INSTRUCTOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_instructor (
    instructor_id UUID,
    created_at TIMESTAMP,
    course_id UUID,
    title TEXT,
    PRIMARY KEY (instructor_id, created_at, course_id)
) WITH CLUSTERING ORDER BY (created_at DESC, course_id ASC)
"""

# Lectures are ordered by position in application code; lecture_id is the
# clustering key so updates and deletes address a single row
LECTURES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lectures (
    course_id UUID,
    lecture_id UUID,
    position INT,
    title TEXT,
    description TEXT,
    video_url TEXT,
    duration_seconds INT,
    resources LIST<FROZEN<MAP<TEXT, TEXT>>>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (course_id, lecture_id)
)
"""

ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    course_id UUID,
    student_id UUID,
    enrolled_at TIMESTAMP,
    PRIMARY KEY (course_id, student_id)
)
"""

ENROLLMENTS_BY_STUDENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_student (
    student_id UUID,
    course_id UUID,
    enrolled_at TIMESTAMP,
    PRIMARY KEY (student_id, course_id)
)
"""

COURSES_TABLES_CQL = [
    COURSES_TABLE_CQL,
    COURSES_BY_INSTRUCTOR_TABLE_CQL,
    LECTURES_TABLE_CQL,
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_STUDENT_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Unique identifier
        title: Course title
        description: Course description
        category: Free-form category used for browsing
        image_url: Cover image URL in the object store
        instructor_id: Owning instructor
        instructor_name: Instructor display name (printed on certificates)
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        description: str | None = None,
        category: str | None = None,
        image_url: str | None = None,
        instructor_id: UUID | None = None,
        instructor_name: str = "",
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description
        self.category = category
        self.image_url = image_url
        self.instructor_id = instructor_id
        self.instructor_name = instructor_name or ""
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description,
            category=row.category,
            image_url=row.image_url,
            instructor_id=row.instructor_id,
            instructor_name=row.instructor_name or "",
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "image_url": self.image_url,
            "instructor_id": self.instructor_id,
            "instructor_name": self.instructor_name,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Course {self.title}>"


class LectureResource:
    """Downloadable file attached to a lecture."""

    def __init__(
        self,
        name: str,
        file_url: str,
        type: str = ResourceType.OTHER.value,
        id: str | None = None,
    ):
        self.id = id or str(uuid4())
        self.name = name
        self.file_url = file_url
        self.type = type

    @classmethod
    def from_map(cls, data: dict[str, str]) -> "LectureResource":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            file_url=data.get("file_url", ""),
            type=data.get("type", ResourceType.OTHER.value),
        )

    def to_map(self) -> dict[str, str]:
        """Serialize for the frozen map column."""
        return {
            "id": self.id,
            "name": self.name,
            "file_url": self.file_url,
            "type": self.type,
        }


class Lecture:
    """Lecture entity: one video plus optional resources.

    Attributes:
        id: Unique identifier
        course_id: Owning course
        position: 0-based order within the course
        title: Lecture title
        description: Lecture description
        video_url: Video location (object store or external player)
        duration_seconds: Known video length, if any
        resources: Downloadable files
    """

    def __init__(
        self,
        course_id: UUID,
        id: UUID | None = None,
        position: int = 0,
        title: str = "",
        description: str | None = None,
        video_url: str | None = None,
        duration_seconds: int | None = None,
        resources: list[LectureResource] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.position = position
        self.title = title.strip()
        self.description = description
        self.video_url = video_url
        self.duration_seconds = duration_seconds
        self.resources = resources or []
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @property
    def is_externally_hosted(self) -> bool:
        """External players are exempt from watch tracking."""
        return is_externally_hosted(self.video_url)

    @classmethod
    def from_row(cls, row: Any) -> "Lecture":
        """Create Lecture instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            id=row.lecture_id,
            position=row.position or 0,
            title=row.title or "",
            description=row.description,
            video_url=row.video_url,
            duration_seconds=row.duration_seconds,
            resources=[LectureResource.from_map(r) for r in row.resources or []],
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "course_id": self.course_id,
            "position": self.position,
            "title": self.title,
            "description": self.description,
            "video_url": self.video_url,
            "duration_seconds": self.duration_seconds,
            "resources": [r.to_map() for r in self.resources],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Lecture {self.position}: {self.title}>"


class Enrollment:
    """A student's membership in a course."""

    def __init__(
        self,
        course_id: UUID,
        student_id: UUID,
        enrolled_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.student_id = student_id
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            student_id=row.student_id,
            enrolled_at=row.enrolled_at,
        )

    def __repr__(self) -> str:
        return f"<Enrollment student={self.student_id} course={self.course_id}>"
