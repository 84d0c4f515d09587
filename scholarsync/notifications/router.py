"""Notification API routes.

Endpoints for:
- GET /v1/notifications - List the caller's notifications
- GET /v1/notifications/unread-count - Unread count
- POST /v1/notifications/mark-read - Mark some or all as read
"""

from fastapi import APIRouter, Query

from scholarsync.auth.dependencies import CurrentUser
from scholarsync.notifications.dependencies import NotificationServiceDep
from scholarsync.notifications.schemas import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)


router = APIRouter(
    prefix="/v1/notifications",
    tags=["notifications"],
)


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List user notifications",
)
async def list_notifications(
    current_user: CurrentUser,
    service: NotificationServiceDep,
    limit: int = Query(default=20, ge=1, le=100, description="Items to return"),
    unread_only: bool = Query(default=False, description="Only show unread"),
) -> NotificationListResponse:
    """List notifications for the current user, newest first."""
    notifications = await service.get_notifications(
        user_id=current_user.id,
        limit=limit,
        unread_only=unread_only,
    )
    return NotificationListResponse(
        items=[NotificationResponse.from_notification(n) for n in notifications],
        unread_count=await service.get_unread_count(current_user.id),
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
)
async def get_unread_count(
    current_user: CurrentUser,
    service: NotificationServiceDep,
) -> UnreadCountResponse:
    count = await service.get_unread_count(user_id=current_user.id)
    return UnreadCountResponse(count=count)


@router.post(
    "/mark-read",
    response_model=MarkReadResponse,
    summary="Mark notifications as read",
)
async def mark_notifications_read(
    body: MarkReadRequest,
    current_user: CurrentUser,
    service: NotificationServiceDep,
) -> MarkReadResponse:
    marked = await service.mark_as_read(current_user.id, body.notification_ids)
    return MarkReadResponse(marked_count=marked)
