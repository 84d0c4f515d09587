"""Database models for course discussion forums.

Cassandra table definitions for:
- Discussion posts: all posts of a course, newest first
- Posts by id: direct lookup, used to validate reply parents

Threads are one level deep: a root post (parent_id NULL) and its replies.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from scholarsync.courses.models import ensure_utc_aware


MAX_CONTENT_LENGTH = 2000


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

DISCUSSION_POSTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.discussion_posts (
    course_id UUID,
    created_at TIMESTAMP,
    post_id UUID,
    parent_id UUID,
    author_id UUID,
    author_name TEXT,
    author_role TEXT,
    content TEXT,
    PRIMARY KEY ((course_id), created_at, post_id)
) WITH CLUSTERING ORDER BY (created_at DESC, post_id ASC)
"""

DISCUSSION_POSTS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.discussion_posts_by_id (
    post_id UUID PRIMARY KEY,
    course_id UUID,
    parent_id UUID,
    author_id UUID,
    author_name TEXT,
    author_role TEXT,
    content TEXT,
    created_at TIMESTAMP
)
"""

DISCUSSIONS_TABLES_CQL = [
    DISCUSSION_POSTS_TABLE_CQL,
    DISCUSSION_POSTS_BY_ID_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class DiscussionPost:
    """Root post or reply in a course forum."""

    post_id: UUID
    course_id: UUID
    parent_id: UUID | None
    author_id: UUID
    author_name: str
    author_role: str
    content: str
    created_at: datetime

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    @classmethod
    def create(
        cls,
        course_id: UUID,
        author_id: UUID,
        author_name: str,
        author_role: str,
        content: str,
        parent_id: UUID | None = None,
    ) -> "DiscussionPost":
        return cls(
            post_id=uuid4(),
            course_id=course_id,
            parent_id=parent_id,
            author_id=author_id,
            author_name=author_name,
            author_role=author_role,
            content=content,
            created_at=datetime.now(UTC),
        )

    @classmethod
    def from_row(cls, row: Any) -> "DiscussionPost":
        """Create DiscussionPost from Cassandra row."""
        return cls(
            post_id=row.post_id,
            course_id=row.course_id,
            parent_id=row.parent_id,
            author_id=row.author_id,
            author_name=row.author_name or "User",
            author_role=row.author_role or "student",
            content=row.content or "",
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
        )


@dataclass
class DiscussionThread:
    """Root post with its replies, oldest reply first."""

    post: DiscussionPost
    replies: list[DiscussionPost] = field(default_factory=list)
