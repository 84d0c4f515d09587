"""Course chat endpoints.

Messages are stored and also published on the course's Redis channel for
clients subscribed in real time.
"""

from fastapi import APIRouter, Query, status

from scholarsync.auth.dependencies import CurrentUser
from scholarsync.courses.dependencies import AccessibleCourse

from .dependencies import ChatServiceDep, handle_chat_error
from .schemas import ChatHistoryResponse, ChatMessageResponse, PostMessageRequest
from .service import ChatError


router = APIRouter(prefix="/v1/courses/{course_id}/chat", tags=["chat"])


@router.get("", response_model=ChatHistoryResponse, summary="Latest chat messages")
async def list_messages(
    course: AccessibleCourse,
    chat_service: ChatServiceDep,
    limit: int | None = Query(None, ge=1, le=500),
) -> ChatHistoryResponse:
    messages = await chat_service.list_messages(course.id, limit=limit)
    return ChatHistoryResponse(
        items=[ChatMessageResponse.from_entity(m) for m in messages]
    )


@router.post(
    "",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a chat message",
)
async def post_message(
    data: PostMessageRequest,
    course: AccessibleCourse,
    chat_service: ChatServiceDep,
    user: CurrentUser,
) -> ChatMessageResponse:
    try:
        message = await chat_service.post_message(course.id, user, data.content)
    except ChatError as e:
        raise handle_chat_error(e) from e
    return ChatMessageResponse.from_entity(message)
