"""Pydantic schemas for notifications."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from scholarsync.notifications.models import Notification, NotificationLevel


class NotificationResponse(BaseModel):
    """Single notification response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Notification ID")
    level: NotificationLevel = Field(description="Severity (toast variant)")
    title: str
    message: str
    reference_type: str | None = None
    reference_id: UUID | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=notification.notification_id,
            level=notification.level,
            title=notification.title,
            message=notification.message,
            reference_type=notification.reference_type,
            reference_id=notification.reference_id,
            is_read=notification.is_read,
            read_at=notification.read_at,
            created_at=notification.created_at,
        )


class NotificationListResponse(BaseModel):
    """Notification list response."""

    items: list[NotificationResponse]
    unread_count: int


class UnreadCountResponse(BaseModel):
    count: int


class MarkReadRequest(BaseModel):
    """Notifications to mark as read; omit to mark everything."""

    notification_ids: list[UUID] | None = Field(None, max_length=100)


class MarkReadResponse(BaseModel):
    marked_count: int
