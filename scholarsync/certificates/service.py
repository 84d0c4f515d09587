"""Certificate service layer."""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from .models import Certificate


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from scholarsync.courses.models import Course

logger = structlog.get_logger(__name__)


class CertificateError(Exception):
    """Base certificate error."""

    def __init__(self, message: str, code: str = "certificate_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CertificateNotFoundError(CertificateError):
    def __init__(self, message: str = "Certificate not found"):
        super().__init__(message, "certificate_not_found")


class CertificateService:
    """Issues and looks up certificates of completion."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_certificate = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.certificates
            (certificate_id, student_id, student_name, course_id, course_title,
             instructor_name, quiz_id, score_percent, issued_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_certificate_by_student = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.certificates_by_student
            (student_id, course_id, certificate_id, course_title, issued_at)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._get_certificate = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.certificates WHERE certificate_id = ?"
        )
        self._get_student_certificate = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates_by_student
            WHERE student_id = ? AND course_id = ?
        """)
        self._get_student_certificates = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.certificates_by_student WHERE student_id = ?"
        )

    async def issue_certificate(
        self,
        student_id: UUID,
        student_name: str,
        course: "Course",
        quiz_id: UUID | None = None,
        score_percent: int = 0,
    ) -> Certificate:
        """Issue a certificate for a course, or return the one already issued."""
        existing = await self.get_student_course_certificate(student_id, course.id)
        if existing:
            return existing

        certificate = Certificate(
            student_id=student_id,
            student_name=student_name,
            course_id=course.id,
            course_title=course.title,
            instructor_name=course.instructor_name,
            quiz_id=quiz_id,
            score_percent=score_percent,
        )

        await self.session.aexecute(
            self._insert_certificate,
            (
                certificate.certificate_id,
                certificate.student_id,
                certificate.student_name,
                certificate.course_id,
                certificate.course_title,
                certificate.instructor_name,
                certificate.quiz_id,
                certificate.score_percent,
                certificate.issued_at,
            ),
        )
        await self.session.aexecute(
            self._insert_certificate_by_student,
            (
                certificate.student_id,
                certificate.course_id,
                certificate.certificate_id,
                certificate.course_title,
                certificate.issued_at,
            ),
        )

        logger.info(
            "certificate_issued",
            certificate_id=certificate.certificate_id,
            student_id=str(student_id),
            course_id=str(course.id),
        )
        return certificate

    async def get_certificate(self, certificate_id: str) -> Certificate | None:
        rows = await self.session.aexecute(self._get_certificate, (certificate_id,))
        row = rows.one()
        return Certificate.from_row(row) if row else None

    async def get_student_course_certificate(
        self, student_id: UUID, course_id: UUID
    ) -> Certificate | None:
        rows = await self.session.aexecute(
            self._get_student_certificate, (student_id, course_id)
        )
        row = rows.one()
        if not row:
            return None
        return await self.get_certificate(row.certificate_id)

    async def list_student_certificates(self, student_id: UUID) -> list[Certificate]:
        """All certificates of a student, newest first."""
        rows = await self.session.aexecute(
            self._get_student_certificates, (student_id,)
        )
        certificates = []
        for row in rows:
            certificate = await self.get_certificate(row.certificate_id)
            if certificate:
                certificates.append(certificate)
        return sorted(certificates, key=lambda c: c.issued_at, reverse=True)
