"""Course management API endpoints.

Provides routes for:
- Courses: catalog, CRUD for instructors
- Lectures: CRUD for the course instructor
- Enrollment
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from scholarsync.auth.dependencies import CurrentUser, InstructorUser

from .dependencies import CourseServiceDep, EditableCourse, handle_course_error
from .schemas import (
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateLectureRequest,
    EnrollmentResponse,
    LectureResponse,
    UpdateCourseRequest,
    UpdateLectureRequest,
)
from .service import CourseError


router = APIRouter(prefix="/v1/courses", tags=["courses"])

# Lectures visible to callers without course access
PREVIEW_LECTURES = 1


def _course_list(courses) -> CourseListResponse:
    return CourseListResponse(
        items=[CourseResponse.from_entity(c) for c in courses],
        total=len(courses),
    )


# ==============================================================================
# Course Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> CourseResponse:
    """Create a course owned by the calling instructor."""
    course = await course_service.create_course(
        data, instructor_id=user.id, instructor_name=user.name
    )
    return CourseResponse.from_entity(course)


@router.get("", response_model=CourseListResponse, summary="List courses")
async def list_courses(
    course_service: CourseServiceDep,
    limit: int = Query(100, ge=1, le=500),
) -> CourseListResponse:
    return _course_list(await course_service.list_courses(limit))


@router.get(
    "/mine",
    response_model=CourseListResponse,
    summary="List courses taught by the caller",
)
async def list_my_courses(
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> CourseListResponse:
    return _course_list(await course_service.list_instructor_courses(user.id))


@router.get(
    "/enrolled",
    response_model=CourseListResponse,
    summary="List courses the caller is enrolled in",
)
async def list_enrolled_courses(
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> CourseListResponse:
    return _course_list(await course_service.list_enrolled_courses(user.id))


@router.get(
    "/{course_id}",
    response_model=CourseDetailResponse,
    summary="Get course with lectures",
)
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> CourseDetailResponse:
    """Get a course and its ordered lectures.

    Callers without access (not enrolled, not the instructor) only see the
    first lecture as a preview.
    """
    try:
        course = await course_service.get_course(course_id)
        if not course:
            raise CourseError("Course not found", "course_not_found")
        lectures = await course_service.list_lectures(course_id)
        has_access = await course_service.has_access(course, user)
    except CourseError as e:
        raise handle_course_error(e) from e

    if not has_access:
        lectures = lectures[:PREVIEW_LECTURES]
    is_enrolled = await course_service.is_enrolled(course_id, user.id)
    return CourseDetailResponse.build(course, lectures, is_enrolled=is_enrolled)


@router.put("/{course_id}", response_model=CourseResponse, summary="Update course")
async def update_course(
    data: UpdateCourseRequest,
    course: EditableCourse,
    course_service: CourseServiceDep,
) -> CourseResponse:
    try:
        updated = await course_service.update_course(course.id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return CourseResponse.from_entity(updated)


@router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course",
)
async def delete_course(
    course: EditableCourse,
    course_service: CourseServiceDep,
) -> None:
    try:
        await course_service.delete_course(course.id)
    except CourseError as e:
        raise handle_course_error(e) from e


# ==============================================================================
# Lecture Endpoints
# ==============================================================================


@router.post(
    "/{course_id}/lectures",
    response_model=LectureResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add lecture",
)
async def add_lecture(
    data: CreateLectureRequest,
    course: EditableCourse,
    course_service: CourseServiceDep,
) -> LectureResponse:
    try:
        lecture = await course_service.add_lecture(course.id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return LectureResponse.from_entity(lecture)


@router.put(
    "/{course_id}/lectures/{lecture_id}",
    response_model=LectureResponse,
    summary="Update lecture",
)
async def update_lecture(
    lecture_id: UUID,
    data: UpdateLectureRequest,
    course: EditableCourse,
    course_service: CourseServiceDep,
) -> LectureResponse:
    try:
        lecture = await course_service.update_lecture(course.id, lecture_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return LectureResponse.from_entity(lecture)


@router.delete(
    "/{course_id}/lectures/{lecture_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete lecture",
)
async def delete_lecture(
    lecture_id: UUID,
    course: EditableCourse,
    course_service: CourseServiceDep,
) -> None:
    try:
        await course_service.delete_lecture(course.id, lecture_id)
    except CourseError as e:
        raise handle_course_error(e) from e


# ==============================================================================
# Enrollment
# ==============================================================================


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in course",
)
async def enroll(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    try:
        enrollment = await course_service.enroll(course_id, user.id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return EnrollmentResponse.from_entity(enrollment)
