"""Notifications module for user-facing status messages.

Provides:
- Notification creation with Redis real-time push
- Listing and unread counts
- Mark as read

Note: Router is imported directly in main.py to avoid circular imports.
"""

from scholarsync.notifications.models import (
    NOTIFICATIONS_TABLES_CQL,
    Notification,
    NotificationLevel,
)


__all__ = [
    "NOTIFICATIONS_TABLES_CQL",
    "Notification",
    "NotificationLevel",
]
