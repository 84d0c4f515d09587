"""Database models for course completion certificates.

A certificate is issued the first time a student passes one of a course's
quizzes; later passes return the existing certificate.
"""

import secrets
import string
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from scholarsync.courses.models import ensure_utc_aware


CERTIFICATE_ID_PREFIX = "CERT-"
CERTIFICATE_ID_LENGTH = 8
_CERTIFICATE_ALPHABET = string.ascii_uppercase + string.digits


def generate_certificate_id() -> str:
    """Human-readable id such as ``CERT-7QK2M9XA``."""
    suffix = "".join(
        secrets.choice(_CERTIFICATE_ALPHABET) for _ in range(CERTIFICATE_ID_LENGTH)
    )
    return f"{CERTIFICATE_ID_PREFIX}{suffix}"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

CERTIFICATES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates (
    certificate_id TEXT PRIMARY KEY,
    student_id UUID,
    student_name TEXT,
    course_id UUID,
    course_title TEXT,
    instructor_name TEXT,
    quiz_id UUID,
    score_percent INT,
    issued_at TIMESTAMP
)
"""

# One certificate per student and course
CERTIFICATES_BY_STUDENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates_by_student (
    student_id UUID,
    course_id UUID,
    certificate_id TEXT,
    course_title TEXT,
    issued_at TIMESTAMP,
    PRIMARY KEY (student_id, course_id)
)
"""

CERTIFICATES_TABLES_CQL = [
    CERTIFICATES_TABLE_CQL,
    CERTIFICATES_BY_STUDENT_TABLE_CQL,
]


class Certificate:
    """Certificate of completion.

    Attributes:
        certificate_id: Public identifier printed on the certificate
        student_id: Recipient
        student_name: Recipient name as printed
        course_id: Completed course
        course_title: Course title as printed
        instructor_name: Instructor name as printed
        quiz_id: Quiz whose pass triggered the issue
        score_percent: Score of that pass
        issued_at: Completion date
    """

    def __init__(
        self,
        student_id: UUID,
        student_name: str,
        course_id: UUID,
        course_title: str,
        instructor_name: str = "",
        quiz_id: UUID | None = None,
        score_percent: int = 0,
        certificate_id: str | None = None,
        issued_at: datetime | None = None,
    ):
        self.certificate_id = certificate_id or generate_certificate_id()
        self.student_id = student_id
        self.student_name = student_name
        self.course_id = course_id
        self.course_title = course_title
        self.instructor_name = instructor_name
        self.quiz_id = quiz_id
        self.score_percent = score_percent
        self.issued_at = ensure_utc_aware(issued_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Certificate":
        """Create Certificate instance from Cassandra row."""
        return cls(
            certificate_id=row.certificate_id,
            student_id=row.student_id,
            student_name=row.student_name or "",
            course_id=row.course_id,
            course_title=row.course_title or "",
            instructor_name=row.instructor_name or "",
            quiz_id=row.quiz_id,
            score_percent=row.score_percent or 0,
            issued_at=row.issued_at,
        )

    def __repr__(self) -> str:
        return f"<Certificate {self.certificate_id} student={self.student_id}>"
