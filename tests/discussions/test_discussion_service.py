"""Tests for course discussions."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from scholarsync.discussions.models import MAX_CONTENT_LENGTH, DiscussionPost
from scholarsync.discussions.service import (
    DiscussionService,
    InvalidContentError,
    NestedReplyError,
    PostNotFoundError,
    clean_content,
)


BASE_TIME = datetime(2026, 1, 10, 12, 0, tzinfo=UTC)


def post_row(course_id, minutes: int, parent_id=None, author_id=None) -> Mock:
    return Mock(
        post_id=uuid4(),
        course_id=course_id,
        parent_id=parent_id,
        author_id=author_id or uuid4(),
        author_name="Ana Souza",
        author_role="student",
        content=f"post at {minutes}",
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def notifications() -> Mock:
    service = Mock()
    service.info = AsyncMock()
    return service


@pytest.fixture
def discussion_service(mock_session, notifications) -> DiscussionService:
    return DiscussionService(mock_session, "test_keyspace", notifications=notifications)


class TestCleanContent:
    """Tests for content sanitising."""

    def test_trims_and_escapes(self) -> None:
        assert clean_content("  <b>hi</b> ") == "&lt;b&gt;hi&lt;/b&gt;"

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank(self, content: str) -> None:
        with pytest.raises(InvalidContentError):
            clean_content(content)

    def test_too_long(self) -> None:
        with pytest.raises(InvalidContentError):
            clean_content("x" * (MAX_CONTENT_LENGTH + 1))


class TestCreatePost:
    """Tests for posting and replying."""

    @pytest.mark.asyncio
    async def test_root_post(self, discussion_service, mock_session, course, student):
        post = await discussion_service.create_post(course.id, student, "Question?")

        assert post.is_reply is False
        assert post.author_id == student.id
        assert post.author_role == "student"
        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_reply_notifies_parent_author(
        self, discussion_service, notifications, course, student, instructor
    ):
        parent = DiscussionPost.create(
            course_id=course.id,
            author_id=student.id,
            author_name=student.name,
            author_role="student",
            content="Question?",
        )
        discussion_service.get_post = AsyncMock(return_value=parent)

        reply = await discussion_service.create_post(
            course.id, instructor, "Answer.", parent_id=parent.post_id
        )

        assert reply.parent_id == parent.post_id
        notifications.info.assert_awaited_once()
        assert notifications.info.await_args.args[0] == student.id

    @pytest.mark.asyncio
    async def test_own_reply_does_not_notify(
        self, discussion_service, notifications, course, student
    ):
        parent = DiscussionPost.create(
            course_id=course.id,
            author_id=student.id,
            author_name=student.name,
            author_role="student",
            content="Question?",
        )
        discussion_service.get_post = AsyncMock(return_value=parent)

        await discussion_service.create_post(
            course.id, student, "Never mind.", parent_id=parent.post_id
        )
        notifications.info.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nested_reply(self, discussion_service, course, student):
        reply = DiscussionPost.create(
            course_id=course.id,
            author_id=uuid4(),
            author_name="Bo",
            author_role="student",
            content="Reply",
            parent_id=uuid4(),
        )
        discussion_service.get_post = AsyncMock(return_value=reply)

        with pytest.raises(NestedReplyError):
            await discussion_service.create_post(
                course.id, student, "Deeper", parent_id=reply.post_id
            )

    @pytest.mark.asyncio
    async def test_parent_in_other_course(self, discussion_service, course, student):
        parent = DiscussionPost.create(
            course_id=uuid4(),
            author_id=uuid4(),
            author_name="Bo",
            author_role="student",
            content="Elsewhere",
        )
        discussion_service.get_post = AsyncMock(return_value=parent)

        with pytest.raises(PostNotFoundError):
            await discussion_service.create_post(
                course.id, student, "Hi", parent_id=parent.post_id
            )

    @pytest.mark.asyncio
    async def test_blank_post(self, discussion_service, mock_session, course, student):
        with pytest.raises(InvalidContentError):
            await discussion_service.create_post(course.id, student, "   ")
        mock_session.aexecute.assert_not_awaited()


class TestListThreads:
    """Threads newest first, replies oldest first."""

    @pytest.mark.asyncio
    async def test_grouping_and_order(
        self, discussion_service, mock_session, result, course
    ):
        old_root = post_row(course.id, 0)
        new_root = post_row(course.id, 10)
        late_reply = post_row(course.id, 20, parent_id=old_root.post_id)
        early_reply = post_row(course.id, 5, parent_id=old_root.post_id)
        orphan = post_row(course.id, 30, parent_id=uuid4())
        # clustering order is newest first
        mock_session.aexecute.return_value = result(
            [orphan, late_reply, new_root, early_reply, old_root]
        )

        threads = await discussion_service.list_threads(course.id)

        assert [t.post.post_id for t in threads] == [new_root.post_id, old_root.post_id]
        assert threads[0].replies == []
        assert [r.post_id for r in threads[1].replies] == [
            early_reply.post_id,
            late_reply.post_id,
        ]
