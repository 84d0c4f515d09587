"""Pydantic schemas for courses, lectures and enrollment."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scholarsync.courses.models import (
    Course,
    Enrollment,
    Lecture,
    ResourceType,
)


# ==============================================================================
# Course Schemas
# ==============================================================================


class CreateCourseRequest(BaseModel):
    """Course creation request."""

    title: str = Field(..., min_length=3, max_length=200, description="Course title")
    description: str | None = Field(
        None, max_length=5000, description="Course description"
    )
    category: str | None = Field(None, max_length=100, description="Category")
    image_url: str | None = Field(None, max_length=500, description="Cover image URL")


class UpdateCourseRequest(BaseModel):
    """Course update request. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, max_length=5000)
    category: str | None = Field(None, max_length=100)
    image_url: str | None = Field(None, max_length=500)


class CourseResponse(BaseModel):
    """Course response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    category: str | None = None
    image_url: str | None = None
    instructor_id: UUID
    instructor_name: str = ""
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, course: Course) -> "CourseResponse":
        return cls.model_validate(course)


class CourseListResponse(BaseModel):
    """Course list response."""

    items: list[CourseResponse]
    total: int


# ==============================================================================
# Lecture Schemas
# ==============================================================================


class LectureResourceSchema(BaseModel):
    """Downloadable lecture resource."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    name: str = Field(..., min_length=1, max_length=200)
    file_url: str = Field(..., min_length=1, max_length=1000)
    type: ResourceType = ResourceType.OTHER


class CreateLectureRequest(BaseModel):
    """Lecture creation request. Position defaults to the end of the course."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    video_url: str | None = Field(None, max_length=1000)
    duration_seconds: int | None = Field(None, ge=1)
    position: int | None = Field(None, ge=0)
    resources: list[LectureResourceSchema] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Title cannot be blank"
            raise ValueError(msg)
        return v


class UpdateLectureRequest(BaseModel):
    """Lecture update request. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    video_url: str | None = Field(None, max_length=1000)
    duration_seconds: int | None = Field(None, ge=1)
    position: int | None = Field(None, ge=0)
    resources: list[LectureResourceSchema] | None = None


class LectureResponse(BaseModel):
    """Lecture response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    position: int
    title: str
    description: str | None = None
    video_url: str | None = None
    duration_seconds: int | None = None
    is_externally_hosted: bool = False
    resources: list[LectureResourceSchema] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, lecture: Lecture) -> "LectureResponse":
        return cls.model_validate(lecture)


class CourseDetailResponse(CourseResponse):
    """Course with its ordered lectures."""

    lectures: list[LectureResponse] = Field(default_factory=list)
    is_enrolled: bool = False

    @classmethod
    def build(
        cls,
        course: Course,
        lectures: list[Lecture],
        is_enrolled: bool,
    ) -> "CourseDetailResponse":
        return cls(
            **CourseResponse.from_entity(course).model_dump(),
            lectures=[LectureResponse.from_entity(lec) for lec in lectures],
            is_enrolled=is_enrolled,
        )


# ==============================================================================
# Enrollment Schemas
# ==============================================================================


class EnrollmentResponse(BaseModel):
    """Enrollment response."""

    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    student_id: UUID
    enrolled_at: datetime

    @classmethod
    def from_entity(cls, enrollment: Enrollment) -> "EnrollmentResponse":
        return cls.model_validate(enrollment)
