"""In-process registry of per-student learning sessions.

Quiz attempts and course viewing sessions are stateful objects that live in
the API process between requests. The registry maps a session handle to its
object and its owner, so one student can never address another's session.
"""

from typing import Generic, TypeVar
from uuid import UUID

import structlog


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SessionRegistry(Generic[T]):
    """Owner-checked mapping of session handles to session objects."""

    def __init__(self, kind: str):
        self.kind = kind
        self._sessions: dict[UUID, tuple[UUID, T]] = {}

    def add(self, session_id: UUID, owner_id: UUID, session: T) -> T:
        self._sessions[session_id] = (owner_id, session)
        logger.debug(
            "session_registered",
            kind=self.kind,
            session_id=str(session_id),
            active=len(self._sessions),
        )
        return session

    def get(self, session_id: UUID, owner_id: UUID) -> T | None:
        """Return the session if it exists and belongs to ``owner_id``."""
        entry = self._sessions.get(session_id)
        if entry is None or entry[0] != owner_id:
            return None
        return entry[1]

    def remove(self, session_id: UUID, owner_id: UUID) -> T | None:
        """Drop an owned session and return it."""
        if self.get(session_id, owner_id) is None:
            return None
        _, session = self._sessions.pop(session_id)
        logger.debug(
            "session_removed",
            kind=self.kind,
            session_id=str(session_id),
            active=len(self._sessions),
        )
        return session

    def values(self) -> list[T]:
        return [session for _, session in self._sessions.values()]

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
