"""Course chat service layer."""

import json
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from scholarsync.core.redis import course_chat_channel

from .models import MAX_MESSAGE_LENGTH, ChatMessage


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis

    from scholarsync.auth.schemas import AuthenticatedUser

logger = structlog.get_logger(__name__)


class ChatError(Exception):
    """Base chat error."""

    def __init__(self, message: str, code: str = "chat_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidMessageError(ChatError):
    def __init__(self, message: str = "Message cannot be blank"):
        super().__init__(message, "invalid_message")


class ChatService:
    """Stores course chat messages and fans them out over Redis."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        history_limit: int = 100,
    ):
        """Initialize with Cassandra session and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.history_limit = history_limit
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_message = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.chat_messages
            (course_id, created_at, message_id, sender_id, sender_name,
             sender_role, content)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_latest = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.chat_messages
            WHERE course_id = ? LIMIT ?
        """)

    async def post_message(
        self, course_id: UUID, sender: "AuthenticatedUser", content: str
    ) -> ChatMessage:
        """Store a message and publish it to the course channel.

        Raises:
            InvalidMessageError: If the content is blank or too long
        """
        content = content.strip()
        if not content:
            raise InvalidMessageError
        if len(content) > MAX_MESSAGE_LENGTH:
            raise InvalidMessageError(
                f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters"
            )

        message = ChatMessage.create(
            course_id=course_id,
            sender_id=sender.id,
            sender_name=sender.name,
            sender_role=sender.role.value,
            content=content,
        )
        await self.session.aexecute(
            self._insert_message,
            (
                message.course_id,
                message.created_at,
                message.message_id,
                message.sender_id,
                message.sender_name,
                message.sender_role,
                message.content,
            ),
        )
        logger.info(
            "chat_message_posted",
            message_id=str(message.message_id),
            course_id=str(course_id),
        )
        await self._publish(message)
        return message

    async def _publish(self, message: ChatMessage) -> None:
        """Best-effort fan-out; storage is the source of truth."""
        if not self.redis:
            return
        payload = {"type": "chat_message", "data": message.to_dict()}
        try:
            await self.redis.publish(
                course_chat_channel(str(message.course_id)), json.dumps(payload)
            )
        except Exception as e:
            logger.warning(
                "chat_publish_failed",
                message_id=str(message.message_id),
                error=str(e),
            )

    async def list_messages(
        self, course_id: UUID, limit: int | None = None
    ) -> list[ChatMessage]:
        """Latest messages of a course, oldest first."""
        rows = await self.session.aexecute(
            self._get_latest, (course_id, limit or self.history_limit)
        )
        messages = [ChatMessage.from_row(row) for row in rows]
        messages.reverse()
        return messages
