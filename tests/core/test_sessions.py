"""Tests for the session registry and context binding."""

from uuid import uuid4

from scholarsync.core.context import (
    SessionContext,
    clear_context,
    get_context,
    get_session_id,
    get_user_id,
    set_request_id,
)
from scholarsync.core.sessions import SessionRegistry


class TestSessionRegistry:
    """Sessions are only reachable by their owner."""

    def test_add_and_get(self) -> None:
        registry: SessionRegistry[str] = SessionRegistry("test")
        session_id, owner = uuid4(), uuid4()
        registry.add(session_id, owner, "session")

        assert registry.get(session_id, owner) == "session"
        assert session_id in registry
        assert len(registry) == 1

    def test_other_owner_cannot_see_or_remove(self) -> None:
        registry: SessionRegistry[str] = SessionRegistry("test")
        session_id, owner = uuid4(), uuid4()
        registry.add(session_id, owner, "session")

        assert registry.get(session_id, uuid4()) is None
        assert registry.remove(session_id, uuid4()) is None
        assert len(registry) == 1

    def test_remove(self) -> None:
        registry: SessionRegistry[str] = SessionRegistry("test")
        session_id, owner = uuid4(), uuid4()
        registry.add(session_id, owner, "session")

        assert registry.remove(session_id, owner) == "session"
        assert registry.get(session_id, owner) is None
        assert registry.remove(session_id, owner) is None

    def test_values_and_clear(self) -> None:
        registry: SessionRegistry[str] = SessionRegistry("test")
        registry.add(uuid4(), uuid4(), "a")
        registry.add(uuid4(), uuid4(), "b")

        assert sorted(registry.values()) == ["a", "b"]
        registry.clear()
        assert len(registry) == 0


class TestSessionContext:
    """Tests for binding a session to the logging context."""

    def test_binds_and_restores(self) -> None:
        clear_context()
        set_request_id("req-1")
        session_id, user_id = uuid4(), uuid4()

        with SessionContext(session_id, user_id):
            assert get_session_id() == str(session_id)
            assert get_user_id() == str(user_id)
            assert get_context() == {
                "request_id": "req-1",
                "user_id": str(user_id),
                "session_id": str(session_id),
            }

        assert get_session_id() is None
        assert get_user_id() is None
        clear_context()

    def test_without_user(self) -> None:
        clear_context()
        with SessionContext(uuid4()):
            assert get_user_id() is None
        assert get_context() == {}
