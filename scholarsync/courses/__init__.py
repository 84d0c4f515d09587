"""Course catalog module.

Provides:
- Courses owned by instructors
- Ordered lectures with downloadable resources
- Enrollment and course access checks
"""

from .models import (
    COURSES_TABLES_CQL,
    Course,
    Enrollment,
    Lecture,
    LectureResource,
    ResourceType,
    is_externally_hosted,
)


__all__ = [
    "COURSES_TABLES_CQL",
    "Course",
    "Enrollment",
    "Lecture",
    "LectureResource",
    "ResourceType",
    "is_externally_hosted",
]
