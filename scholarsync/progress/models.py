"""Database models for student video progress.

Cassandra table definitions for:
- Video progress: watched flag per student and lecture

One row per (student, lecture); writes are upserts on that natural key, so a
repeated "watched" event is harmless.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from scholarsync.courses.models import ensure_utc_aware


# Fraction of a video that counts as watched
COMPLETION_THRESHOLD = 0.90


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition by student: completion needs every flag of one student
VIDEO_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.video_progress (
    student_id UUID,
    lecture_id UUID,
    course_id UUID,
    watched BOOLEAN,
    updated_at TIMESTAMP,
    PRIMARY KEY ((student_id), lecture_id)
)
"""

PROGRESS_TABLES_CQL = [
    VIDEO_PROGRESS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class VideoProgressEntry:
    """Watched flag of one lecture for one student."""

    def __init__(
        self,
        student_id: UUID,
        lecture_id: UUID,
        course_id: UUID,
        watched: bool = False,
        updated_at: datetime | None = None,
    ):
        self.student_id = student_id
        self.lecture_id = lecture_id
        self.course_id = course_id
        self.watched = watched
        self.updated_at = ensure_utc_aware(updated_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "VideoProgressEntry":
        """Create VideoProgressEntry instance from Cassandra row."""
        return cls(
            student_id=row.student_id,
            lecture_id=row.lecture_id,
            course_id=row.course_id,
            watched=bool(row.watched),
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": str(self.student_id),
            "lecture_id": str(self.lecture_id),
            "course_id": str(self.course_id),
            "watched": self.watched,
            "updated_at": self.updated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"<VideoProgressEntry student={self.student_id} "
            f"lecture={self.lecture_id} watched={self.watched}>"
        )


@dataclass(frozen=True)
class CourseCompletion:
    """Derived completion of a course for one student. Never stored."""

    course_id: UUID
    lectures_watched: int
    lectures_total: int

    @property
    def completed(self) -> bool:
        return self.lectures_total > 0 and self.lectures_watched >= self.lectures_total
