"""Request and learning-session context tracking using contextvars.

Every HTTP request gets a request ID, and once the caller is authenticated
its user ID. Code that operates on a quiz or viewing session binds the
session handle as well, so log events emitted deep inside the state machines
(including the countdown task, which runs outside any request) can be tied
back to the session that produced them.
"""

from contextvars import ContextVar, Token
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context, generating one if missing."""
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_user_id() -> str | None:
    """Get the current user ID."""
    return user_id_var.get()


def set_user_id(user_id: str | UUID | None) -> None:
    """Set the user ID for the current context."""
    user_id_var.set(str(user_id) if user_id is not None else None)


def get_session_id() -> str | None:
    """Get the quiz or viewing session bound to the current context."""
    return session_id_var.get()


def set_session_id(session_id: str | UUID | None) -> None:
    """Bind a quiz or viewing session handle to the current context."""
    session_id_var.set(str(session_id) if session_id is not None else None)


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    user_id = get_user_id()
    if user_id:
        context["user_id"] = user_id

    session_id = get_session_id()
    if session_id:
        context["session_id"] = session_id

    return context


def clear_context() -> None:
    """Clear all context variables at the end of a request."""
    request_id_var.set("")
    user_id_var.set(None)
    session_id_var.set(None)


class SessionContext:
    """Bind a learning session (and its owner) for the duration of a block.

    Usage:
        with SessionContext(session.session_id, session.student_id):
            session.tick()
    """

    def __init__(
        self,
        session_id: str | UUID,
        user_id: str | UUID | None = None,
    ) -> None:
        self.session_id = str(session_id)
        self.user_id = str(user_id) if user_id is not None else None
        self._session_token: Token[str | None] | None = None
        self._user_token: Token[str | None] | None = None

    def __enter__(self) -> "SessionContext":
        self._session_token = session_id_var.set(self.session_id)
        if self.user_id is not None:
            self._user_token = user_id_var.set(self.user_id)
        return self

    def __exit__(self, *_: object) -> None:
        if self._session_token is not None:
            session_id_var.reset(self._session_token)
        if self._user_token is not None:
            user_id_var.reset(self._user_token)
