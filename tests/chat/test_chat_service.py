"""Tests for course chat."""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from scholarsync.chat.models import MAX_MESSAGE_LENGTH
from scholarsync.chat.service import ChatService, InvalidMessageError


def message_row(course_id, minutes: int) -> Mock:
    return Mock(
        message_id=uuid4(),
        course_id=course_id,
        sender_id=uuid4(),
        sender_name="Ana Souza",
        sender_role="student",
        content=f"message {minutes}",
        created_at=datetime(2026, 1, 10, tzinfo=UTC) + timedelta(minutes=minutes),
    )


class TestPostMessage:
    """Tests for ChatService.post_message."""

    @pytest.mark.asyncio
    async def test_stores_and_publishes(self, mock_session, course, student) -> None:
        redis = AsyncMock()
        service = ChatService(mock_session, "test_keyspace", redis=redis)

        message = await service.post_message(course.id, student, "  Hello class  ")

        assert message.content == "Hello class"
        assert message.sender_name == "Ana Souza"
        mock_session.aexecute.assert_awaited_once()
        channel, payload = redis.publish.await_args.args
        assert channel == f"chat:course:{course.id}"
        data = json.loads(payload)
        assert data["type"] == "chat_message"
        assert data["data"]["content"] == "Hello class"

    @pytest.mark.asyncio
    async def test_works_without_redis(self, mock_session, course, student) -> None:
        service = ChatService(mock_session, "test_keyspace")
        message = await service.post_message(course.id, student, "Hi")
        assert message.course_id == course.id

    @pytest.mark.asyncio
    async def test_publish_failure_keeps_message(
        self, mock_session, course, student
    ) -> None:
        redis = AsyncMock()
        redis.publish.side_effect = ConnectionError("redis down")
        service = ChatService(mock_session, "test_keyspace", redis=redis)

        message = await service.post_message(course.id, student, "Hi")

        assert message.content == "Hi"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "    "])
    async def test_blank(self, mock_session, course, student, content) -> None:
        service = ChatService(mock_session, "test_keyspace")
        with pytest.raises(InvalidMessageError):
            await service.post_message(course.id, student, content)

    @pytest.mark.asyncio
    async def test_too_long(self, mock_session, course, student) -> None:
        service = ChatService(mock_session, "test_keyspace")
        with pytest.raises(InvalidMessageError):
            await service.post_message(course.id, student, "x" * (MAX_MESSAGE_LENGTH + 1))


class TestListMessages:
    """History comes back oldest first."""

    @pytest.mark.asyncio
    async def test_chronological(self, mock_session, result, course) -> None:
        rows = [message_row(course.id, m) for m in (30, 20, 10)]
        mock_session.aexecute.return_value = result(rows)
        service = ChatService(mock_session, "test_keyspace", history_limit=3)

        messages = await service.list_messages(course.id)

        assert [m.content for m in messages] == ["message 10", "message 20", "message 30"]
        assert mock_session.aexecute.await_args.args[1] == (course.id, 3)

    @pytest.mark.asyncio
    async def test_explicit_limit(self, mock_session, course) -> None:
        service = ChatService(mock_session, "test_keyspace")
        await service.list_messages(course.id, limit=10)
        assert mock_session.aexecute.await_args.args[1] == (course.id, 10)
