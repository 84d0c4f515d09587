"""FastAPI dependencies for course management."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from scholarsync.auth.dependencies import CurrentUser, InstructorUser
from scholarsync.auth.permissions import can_manage_course

from .models import Course
from .service import CourseError, CourseService


async def get_course_service(request: Request) -> CourseService:
    """Get course service from app state."""
    service = getattr(request.app.state, "course_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Course service not available",
        )
    return service


CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]


async def verify_course_edit_access(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> Course:
    """Load a course the caller may edit (owning instructor or admin)."""
    course = await course_service.get_course(course_id)
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )
    if not can_manage_course(str(user.id), user.role, str(course.instructor_id)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot edit this course",
        )
    return course


EditableCourse = Annotated[Course, Depends(verify_course_edit_access)]


def handle_course_error(error: CourseError) -> HTTPException:
    """Convert course errors to HTTP exceptions."""
    status_map = {
        "course_not_found": status.HTTP_404_NOT_FOUND,
        "lecture_not_found": status.HTTP_404_NOT_FOUND,
        "already_enrolled": status.HTTP_409_CONFLICT,
        "access_denied": status.HTTP_403_FORBIDDEN,
    }

    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )


async def require_course_access(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> Course:
    """Course the caller participates in (enrolled, instructor or admin)."""
    try:
        return await course_service.require_access(course_id, user)
    except CourseError as e:
        raise handle_course_error(e) from e


AccessibleCourse = Annotated[Course, Depends(require_course_access)]
