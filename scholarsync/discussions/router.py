"""Course discussion forum endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from scholarsync.auth.dependencies import CurrentUser
from scholarsync.courses.dependencies import AccessibleCourse

from .dependencies import DiscussionServiceDep, handle_discussion_error
from .schemas import CreatePostRequest, PostResponse, ThreadListResponse, ThreadResponse
from .service import DiscussionError


router = APIRouter(prefix="/v1/courses/{course_id}/discussions", tags=["discussions"])


@router.get("", response_model=ThreadListResponse, summary="List discussion threads")
async def list_threads(
    course: AccessibleCourse,
    discussion_service: DiscussionServiceDep,
    limit: int = Query(500, ge=1, le=2000),
) -> ThreadListResponse:
    threads = await discussion_service.list_threads(course.id, limit=limit)
    return ThreadListResponse(
        items=[ThreadResponse.from_thread(t) for t in threads],
        total=len(threads),
    )


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a discussion thread",
)
async def create_post(
    data: CreatePostRequest,
    course: AccessibleCourse,
    discussion_service: DiscussionServiceDep,
    user: CurrentUser,
) -> PostResponse:
    try:
        post = await discussion_service.create_post(course.id, user, data.content)
    except DiscussionError as e:
        raise handle_discussion_error(e) from e
    return PostResponse.from_entity(post)


@router.post(
    "/{post_id}/replies",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to a thread",
)
async def create_reply(
    post_id: UUID,
    data: CreatePostRequest,
    course: AccessibleCourse,
    discussion_service: DiscussionServiceDep,
    user: CurrentUser,
) -> PostResponse:
    try:
        post = await discussion_service.create_post(
            course.id, user, data.content, parent_id=post_id
        )
    except DiscussionError as e:
        raise handle_discussion_error(e) from e
    return PostResponse.from_entity(post)
