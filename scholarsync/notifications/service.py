"""Notification service layer.

Business logic for:
- Creating notifications and pushing them over Redis Pub/Sub
- Listing notifications and unread counts
- Marking notifications as read
"""

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from scholarsync.core.redis import notification_channel

from .models import Notification, NotificationLevel


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis

logger = structlog.get_logger(__name__)

# Upper bound on rows scanned for unread counts and bulk updates
RECENT_WINDOW = 500


class NotificationService:
    """Service for notification management."""

    def __init__(self, session: "Session", keyspace: str, redis: "Redis | None" = None):
        """Initialize with Cassandra session and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_notification = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.notifications
            (user_id, created_at, notification_id, level, title, message,
             reference_type, reference_id, is_read, read_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_notifications = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.notifications
            WHERE user_id = ?
            LIMIT ?
        """)

        self._mark_read = self.session.prepare(f"""
            UPDATE {self.keyspace}.notifications
            SET is_read = true, read_at = ?
            WHERE user_id = ? AND created_at = ? AND notification_id = ?
        """)

    # ==========================================================================
    # Notification Creation
    # ==========================================================================

    async def create_notification(self, notification: Notification) -> Notification:
        """Persist a notification and publish it for real-time delivery."""
        await self.session.aexecute(
            self._insert_notification,
            [
                notification.user_id,
                notification.created_at,
                notification.notification_id,
                notification.level.value,
                notification.title,
                notification.message,
                notification.reference_type,
                notification.reference_id,
                notification.is_read,
                notification.read_at,
            ],
        )
        await self._publish_notification(notification)
        return notification

    async def _publish_notification(self, notification: Notification) -> None:
        """Publish to the user's Redis channel; delivery is best-effort."""
        if not self.redis:
            return

        message = {"type": "notification", "data": notification.to_dict()}
        try:
            await self.redis.publish(
                notification_channel(str(notification.user_id)), json.dumps(message)
            )
        except Exception as e:
            logger.warning(
                "notification_publish_failed",
                notification_id=str(notification.notification_id),
                error=str(e),
            )

    async def notify(
        self,
        user_id: UUID,
        level: NotificationLevel,
        title: str,
        message: str,
        reference_type: str | None = None,
        reference_id: UUID | None = None,
    ) -> Notification | None:
        """Create a notification without ever failing the caller.

        The learning flows call this from their own error paths, where the
        database may well be the thing that is failing. Errors are logged and
        ``None`` is returned.
        """
        notification = Notification.create(
            user_id=user_id,
            level=level,
            title=title,
            message=message,
            reference_type=reference_type,
            reference_id=reference_id,
        )
        try:
            return await self.create_notification(notification)
        except Exception as e:
            logger.error(
                "notification_create_failed",
                user_id=str(user_id),
                level=level.value,
                title=title,
                error=str(e),
            )
            return None

    async def info(self, user_id: UUID, title: str, message: str) -> Notification | None:
        return await self.notify(user_id, NotificationLevel.INFO, title, message)

    async def warn(self, user_id: UUID, title: str, message: str) -> Notification | None:
        return await self.notify(user_id, NotificationLevel.WARNING, title, message)

    async def success(
        self, user_id: UUID, title: str, message: str
    ) -> Notification | None:
        return await self.notify(user_id, NotificationLevel.SUCCESS, title, message)

    # ==========================================================================
    # Notification Reading
    # ==========================================================================

    async def get_notifications(
        self,
        user_id: UUID,
        limit: int = 20,
        unread_only: bool = False,
    ) -> list[Notification]:
        """Get a user's notifications, newest first."""
        rows = await self.session.aexecute(
            self._get_notifications,
            [user_id, RECENT_WINDOW if unread_only else limit],
        )
        notifications = [Notification.from_row(row) for row in rows]
        if unread_only:
            notifications = [n for n in notifications if not n.is_read]
        return notifications[:limit]

    async def get_unread_count(self, user_id: UUID) -> int:
        """Count unread notifications among the recent window."""
        rows = await self.session.aexecute(
            self._get_notifications, [user_id, RECENT_WINDOW]
        )
        return sum(1 for row in rows if not row.is_read)

    # ==========================================================================
    # Mark as Read
    # ==========================================================================

    async def mark_as_read(
        self,
        user_id: UUID,
        notification_ids: list[UUID] | None = None,
    ) -> int:
        """Mark the given notifications (or all when ``None``) as read.

        Returns:
            Number of notifications that changed state.
        """
        now = datetime.now(UTC)
        wanted = set(notification_ids) if notification_ids is not None else None
        marked = 0

        rows = await self.session.aexecute(
            self._get_notifications, [user_id, RECENT_WINDOW]
        )
        for row in rows:
            if row.is_read:
                continue
            if wanted is not None and row.notification_id not in wanted:
                continue
            await self.session.aexecute(
                self._mark_read,
                [now, user_id, row.created_at, row.notification_id],
            )
            marked += 1

        if marked:
            logger.info("notifications_marked_read", user_id=str(user_id), count=marked)
        return marked
