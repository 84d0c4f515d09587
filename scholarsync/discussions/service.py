"""Discussion service layer."""

import html
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from .models import MAX_CONTENT_LENGTH, DiscussionPost, DiscussionThread


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from scholarsync.auth.schemas import AuthenticatedUser
    from scholarsync.notifications.service import NotificationService

logger = structlog.get_logger(__name__)


class DiscussionError(Exception):
    """Base discussion error."""

    def __init__(self, message: str, code: str = "discussion_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class PostNotFoundError(DiscussionError):
    def __init__(self, message: str = "Post not found"):
        super().__init__(message, "post_not_found")


class NestedReplyError(DiscussionError):
    def __init__(self, message: str = "Replies can only be made to top-level posts"):
        super().__init__(message, "nested_reply")


class InvalidContentError(DiscussionError):
    def __init__(self, message: str = "Content cannot be blank"):
        super().__init__(message, "invalid_content")


def clean_content(content: str) -> str:
    """Trim and escape user text.

    Raises:
        InvalidContentError: If the text is blank or too long
    """
    content = content.strip()
    if not content:
        raise InvalidContentError
    if len(content) > MAX_CONTENT_LENGTH:
        raise InvalidContentError(
            f"Content cannot exceed {MAX_CONTENT_LENGTH} characters"
        )
    return html.escape(content)


class DiscussionService:
    """Service for course discussion forums."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        notifications: "NotificationService | None" = None,
    ):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self.notifications = notifications
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_post = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.discussion_posts
            (course_id, created_at, post_id, parent_id, author_id,
             author_name, author_role, content)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_post_by_id = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.discussion_posts_by_id
            (post_id, course_id, parent_id, author_id, author_name,
             author_role, content, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_post = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.discussion_posts_by_id WHERE post_id = ?"
        )
        self._get_course_posts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.discussion_posts
            WHERE course_id = ? LIMIT ?
        """)

    async def create_post(
        self,
        course_id: UUID,
        author: "AuthenticatedUser",
        content: str,
        parent_id: UUID | None = None,
    ) -> DiscussionPost:
        """Create a root post, or a reply when ``parent_id`` is given.

        Raises:
            InvalidContentError: If the content is blank or too long
            PostNotFoundError: If the parent is missing or in another course
            NestedReplyError: If the parent is itself a reply
        """
        safe_content = clean_content(content)

        parent = None
        if parent_id is not None:
            parent = await self.get_post(parent_id)
            if parent is None or parent.course_id != course_id:
                raise PostNotFoundError("Parent post not found")
            if parent.is_reply:
                raise NestedReplyError

        post = DiscussionPost.create(
            course_id=course_id,
            author_id=author.id,
            author_name=author.name,
            author_role=author.role.value,
            content=safe_content,
            parent_id=parent_id,
        )

        await self.session.aexecute(
            self._insert_post,
            (
                post.course_id,
                post.created_at,
                post.post_id,
                post.parent_id,
                post.author_id,
                post.author_name,
                post.author_role,
                post.content,
            ),
        )
        await self.session.aexecute(
            self._insert_post_by_id,
            (
                post.post_id,
                post.course_id,
                post.parent_id,
                post.author_id,
                post.author_name,
                post.author_role,
                post.content,
                post.created_at,
            ),
        )

        logger.info(
            "discussion_post_created",
            post_id=str(post.post_id),
            course_id=str(course_id),
            is_reply=post.is_reply,
        )

        if parent is not None and parent.author_id != author.id and self.notifications:
            await self.notifications.info(
                parent.author_id,
                "New reply",
                f"{author.name} replied to your post.",
            )
        return post

    async def get_post(self, post_id: UUID) -> DiscussionPost | None:
        rows = await self.session.aexecute(self._get_post, (post_id,))
        row = rows.one()
        return DiscussionPost.from_row(row) if row else None

    async def list_threads(
        self, course_id: UUID, limit: int = 500
    ) -> list[DiscussionThread]:
        """Threads newest first, each with its replies oldest first."""
        rows = await self.session.aexecute(self._get_course_posts, (course_id, limit))
        posts = [DiscussionPost.from_row(row) for row in rows]

        threads: dict[UUID, DiscussionThread] = {}
        replies: list[DiscussionPost] = []
        for post in posts:
            if post.is_reply:
                replies.append(post)
            else:
                threads[post.post_id] = DiscussionThread(post=post)

        for reply in sorted(replies, key=lambda p: p.created_at):
            thread = threads.get(reply.parent_id)
            if thread is not None:
                thread.replies.append(reply)

        return sorted(
            threads.values(), key=lambda t: t.post.created_at, reverse=True
        )
