"""Database models for course chat.

Messages are partitioned by course and clustered newest first, so the
latest N messages are a single slice.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from scholarsync.courses.models import ensure_utc_aware


MAX_MESSAGE_LENGTH = 2000


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

CHAT_MESSAGES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.chat_messages (
    course_id UUID,
    created_at TIMESTAMP,
    message_id UUID,
    sender_id UUID,
    sender_name TEXT,
    sender_role TEXT,
    content TEXT,
    PRIMARY KEY ((course_id), created_at, message_id)
) WITH CLUSTERING ORDER BY (created_at DESC, message_id ASC)
"""

CHAT_TABLES_CQL = [
    CHAT_MESSAGES_TABLE_CQL,
]


@dataclass
class ChatMessage:
    """Chat message in a course room."""

    message_id: UUID
    course_id: UUID
    sender_id: UUID
    sender_name: str
    sender_role: str
    content: str
    created_at: datetime

    @classmethod
    def create(
        cls,
        course_id: UUID,
        sender_id: UUID,
        sender_name: str,
        sender_role: str,
        content: str,
    ) -> "ChatMessage":
        return cls(
            message_id=uuid4(),
            course_id=course_id,
            sender_id=sender_id,
            sender_name=sender_name,
            sender_role=sender_role,
            content=content,
            created_at=datetime.now(UTC),
        )

    @classmethod
    def from_row(cls, row: Any) -> "ChatMessage":
        """Create ChatMessage from Cassandra row."""
        return cls(
            message_id=row.message_id,
            course_id=row.course_id,
            sender_id=row.sender_id,
            sender_name=row.sender_name or "User",
            sender_role=row.sender_role or "student",
            content=row.content or "",
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message_id": str(self.message_id),
            "course_id": str(self.course_id),
            "sender_id": str(self.sender_id),
            "sender_name": self.sender_name,
            "sender_role": self.sender_role,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }
