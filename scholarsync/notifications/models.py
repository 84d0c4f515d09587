"""Database models for user notifications.

Notifications are short, toast-style messages addressed to one user:
"Lecture completed!", "Quiz passed", or a warning that progress could not
be saved. They are persisted per user and pushed over Redis when available.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from scholarsync.courses.models import ensure_utc_aware


class NotificationLevel(str, Enum):
    """Severity, mirrored by the client's toast variant."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

NOTIFICATION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.notifications (
    user_id UUID,
    created_at TIMESTAMP,
    notification_id UUID,
    level TEXT,
    title TEXT,
    message TEXT,
    reference_type TEXT,
    reference_id UUID,
    is_read BOOLEAN,
    read_at TIMESTAMP,
    PRIMARY KEY ((user_id), created_at, notification_id)
) WITH CLUSTERING ORDER BY (created_at DESC, notification_id ASC)
"""

NOTIFICATIONS_TABLES_CQL = [
    NOTIFICATION_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Notification:
    """Notification entity."""

    notification_id: UUID
    user_id: UUID
    level: NotificationLevel
    title: str
    message: str
    reference_type: str | None
    reference_id: UUID | None
    is_read: bool
    read_at: datetime | None
    created_at: datetime

    @classmethod
    def create(
        cls,
        user_id: UUID,
        level: NotificationLevel,
        title: str,
        message: str,
        reference_type: str | None = None,
        reference_id: UUID | None = None,
    ) -> "Notification":
        """Build a new unread notification."""
        return cls(
            notification_id=uuid4(),
            user_id=user_id,
            level=level,
            title=title,
            message=message,
            reference_type=reference_type,
            reference_id=reference_id,
            is_read=False,
            read_at=None,
            created_at=datetime.now(UTC),
        )

    @classmethod
    def from_row(cls, row: Any) -> "Notification":
        """Create Notification from Cassandra row."""
        return cls(
            notification_id=row.notification_id,
            user_id=row.user_id,
            level=NotificationLevel(row.level),
            title=row.title or "",
            message=row.message or "",
            reference_type=row.reference_type,
            reference_id=row.reference_id,
            is_read=row.is_read or False,
            read_at=ensure_utc_aware(row.read_at),
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary (Redis payload)."""
        return {
            "id": str(self.notification_id),
            "user_id": str(self.user_id),
            "level": self.level.value,
            "title": self.title,
            "message": self.message,
            "reference_type": self.reference_type,
            "reference_id": str(self.reference_id) if self.reference_id else None,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(),
        }
