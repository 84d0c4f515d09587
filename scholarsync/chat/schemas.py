"""Pydantic schemas for course chat."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import MAX_MESSAGE_LENGTH, ChatMessage


class PostMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)


class ChatMessageResponse(BaseModel):
    message_id: UUID
    course_id: UUID
    sender_id: UUID
    sender_name: str
    sender_role: str
    content: str
    created_at: datetime

    @classmethod
    def from_entity(cls, message: ChatMessage) -> "ChatMessageResponse":
        return cls(
            message_id=message.message_id,
            course_id=message.course_id,
            sender_id=message.sender_id,
            sender_name=message.sender_name,
            sender_role=message.sender_role,
            content=message.content,
            created_at=message.created_at,
        )


class ChatHistoryResponse(BaseModel):
    items: list[ChatMessageResponse]
