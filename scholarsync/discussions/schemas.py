"""Pydantic schemas for discussions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import MAX_CONTENT_LENGTH, DiscussionPost, DiscussionThread


class CreatePostRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)


class PostResponse(BaseModel):
    post_id: UUID
    course_id: UUID
    parent_id: UUID | None = None
    author_id: UUID
    author_name: str
    author_role: str
    content: str
    created_at: datetime

    @classmethod
    def from_entity(cls, post: DiscussionPost) -> "PostResponse":
        return cls(
            post_id=post.post_id,
            course_id=post.course_id,
            parent_id=post.parent_id,
            author_id=post.author_id,
            author_name=post.author_name,
            author_role=post.author_role,
            content=post.content,
            created_at=post.created_at,
        )


class ThreadResponse(PostResponse):
    replies: list[PostResponse] = Field(default_factory=list)

    @classmethod
    def from_thread(cls, thread: DiscussionThread) -> "ThreadResponse":
        return cls(
            **PostResponse.from_entity(thread.post).model_dump(),
            replies=[PostResponse.from_entity(r) for r in thread.replies],
        )


class ThreadListResponse(BaseModel):
    items: list[ThreadResponse]
    total: int
