"""Student progress tracking API endpoints.

Provides routes for:
- Viewing sessions and playback reports (watch detection)
- Manual watched flags
- Course completion
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from scholarsync.auth.dependencies import CurrentUser
from scholarsync.courses.dependencies import CourseServiceDep, handle_course_error
from scholarsync.courses.service import CourseError

from .dependencies import ProgressServiceDep, handle_progress_error
from .schemas import (
    CourseCompletionResponse,
    OpenViewingSessionRequest,
    VideoProgressEntryResponse,
    VideoProgressRequest,
    VideoProgressResponse,
    ViewingSessionResponse,
    WatchedFlagRequest,
)
from .service import LectureNotInCourseError, ProgressError
from .tracker import UnknownLectureError


router = APIRouter(prefix="/v1/progress", tags=["progress"])


# ==============================================================================
# Viewing Session Endpoints
# ==============================================================================


@router.post(
    "/sessions",
    response_model=ViewingSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a viewing session",
)
async def open_viewing_session(
    data: OpenViewingSessionRequest,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> ViewingSessionResponse:
    """Open a viewing session for a course the caller has access to."""
    try:
        await course_service.require_access(data.course_id, user)
    except CourseError as e:
        raise handle_course_error(e) from e

    try:
        viewing = await progress_service.open_viewing_session(data.course_id, user.id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return ViewingSessionResponse.from_session(viewing, await viewing.load())


@router.get(
    "/sessions/{session_id}",
    response_model=ViewingSessionResponse,
    summary="Get a viewing session",
)
async def get_viewing_session(
    session_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ViewingSessionResponse:
    try:
        viewing = progress_service.require_viewing_session(session_id, user.id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return ViewingSessionResponse.from_session(viewing, await viewing.load())


@router.put(
    "/sessions/{session_id}/video",
    response_model=VideoProgressResponse,
    summary="Report video playback",
)
async def report_video_progress(
    session_id: UUID,
    data: VideoProgressRequest,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> VideoProgressResponse:
    """Report the playback position of a lecture video.

    Called periodically by the player. The first report at or past 90% of
    the duration marks the lecture as watched.
    """
    try:
        viewing = progress_service.require_viewing_session(session_id, user.id)
        update = await viewing.on_video_progress(
            data.lecture_id, data.position_seconds, data.duration_seconds
        )
    except UnknownLectureError as e:
        raise handle_progress_error(LectureNotInCourseError()) from e
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return VideoProgressResponse.from_update(update)


@router.post(
    "/sessions/{session_id}/refresh",
    response_model=ViewingSessionResponse,
    summary="Reload watched lectures from storage",
)
async def refresh_viewing_session(
    session_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ViewingSessionResponse:
    try:
        viewing = progress_service.require_viewing_session(session_id, user.id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return ViewingSessionResponse.from_session(viewing, await viewing.refresh())


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close a viewing session",
)
async def close_viewing_session(
    session_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> None:
    progress_service.close_viewing_session(session_id, user.id)


# ==============================================================================
# Watched Flag Endpoints
# ==============================================================================


async def _require_lecture(
    course_service: CourseServiceDep,
    course_id: UUID,
    lecture_id: UUID,
    user: CurrentUser,
) -> None:
    try:
        await course_service.require_access(course_id, user)
    except CourseError as e:
        raise handle_course_error(e) from e
    if not await course_service.get_lecture(course_id, lecture_id):
        raise handle_progress_error(LectureNotInCourseError())


@router.put(
    "/lectures/{lecture_id}/watched",
    response_model=VideoProgressEntryResponse,
    summary="Mark a lecture as watched",
)
async def mark_lecture_watched(
    lecture_id: UUID,
    data: WatchedFlagRequest,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> VideoProgressEntryResponse:
    """Set the watched flag by hand, e.g. for externally hosted videos."""
    await _require_lecture(course_service, data.course_id, lecture_id, user)
    entry = await progress_service.mark_watched(user.id, lecture_id, data.course_id)
    return VideoProgressEntryResponse.from_entity(entry)


@router.delete(
    "/lectures/{lecture_id}/watched",
    response_model=VideoProgressEntryResponse,
    summary="Clear the watched flag of a lecture",
)
async def clear_lecture_watched(
    lecture_id: UUID,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
    course_id: UUID = Query(..., description="Course UUID"),
) -> VideoProgressEntryResponse:
    await _require_lecture(course_service, course_id, lecture_id, user)
    entry = await progress_service.clear_watched(user.id, lecture_id, course_id)
    return VideoProgressEntryResponse.from_entity(entry)


# ==============================================================================
# Course Progress Endpoints
# ==============================================================================


@router.get(
    "/courses/{course_id}",
    response_model=list[VideoProgressEntryResponse],
    summary="Watched flags of the caller in a course",
)
async def get_course_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> list[VideoProgressEntryResponse]:
    entries = await progress_service.get_progress_entries(user.id, course_id)
    return [VideoProgressEntryResponse.from_entity(e) for e in entries]


@router.get(
    "/courses/{course_id}/completion",
    response_model=CourseCompletionResponse,
    summary="Course completion of the caller",
)
async def get_course_completion(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> CourseCompletionResponse:
    """Recomputed from the stored watched flags on every call."""
    try:
        completion = await progress_service.get_course_completion(user.id, course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return CourseCompletionResponse.from_completion(completion)
