"""Pydantic schemas for certificates."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .models import Certificate


class CertificateResponse(BaseModel):
    """Certificate response."""

    model_config = ConfigDict(from_attributes=True)

    certificate_id: str
    student_id: UUID
    student_name: str
    course_id: UUID
    course_title: str
    instructor_name: str = ""
    quiz_id: UUID | None = None
    score_percent: int
    issued_at: datetime

    @classmethod
    def from_entity(cls, certificate: Certificate) -> "CertificateResponse":
        return cls.model_validate(certificate)


class CertificateListResponse(BaseModel):
    items: list[CertificateResponse]
