"""Shared fixtures."""

from collections.abc import Callable
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scholarsync.auth.permissions import UserRole
from scholarsync.auth.schemas import AuthenticatedUser
from scholarsync.auth.security import create_access_token
from scholarsync.courses.models import Course, Lecture
from scholarsync.main import create_app
from scholarsync.quizzes.models import Question, Quiz


class FakeResult(list):
    """Stand-in for a driver ResultSet: iterable with ``one()``."""

    def one(self):
        return self[0] if self else None


@pytest.fixture
def result() -> type[FakeResult]:
    """Factory for driver-like results: ``result([row, ...])``."""
    return FakeResult


@pytest.fixture
def mock_session():
    """Mock Cassandra session (cassandra-asyncio-driver style)."""
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    session.aexecute = AsyncMock(return_value=FakeResult())
    return session


@pytest.fixture
def app() -> FastAPI:
    """Application without lifespan: services are attached per test."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(
        user_id: UUID | None = None,
        role: UserRole = UserRole.STUDENT,
        name: str = "Ana Souza",
    ) -> str:
        return create_access_token(
            {
                "sub": str(user_id or uuid4()),
                "email": "ana@example.com",
                "user_metadata": {"role": role.value, "name": name},
            }
        )

    return _make


@pytest.fixture
def student() -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid4(), email="ana@example.com", role=UserRole.STUDENT, name="Ana Souza"
    )


@pytest.fixture
def instructor() -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid4(), email="prof@example.com", role=UserRole.INSTRUCTOR, name="Prof. Lima"
    )


@pytest.fixture
def course(instructor: AuthenticatedUser) -> Course:
    return Course(
        title="Intro to Statistics",
        description="Descriptive statistics",
        instructor_id=instructor.id,
        instructor_name=instructor.name,
    )


@pytest.fixture
def lectures(course: Course) -> list[Lecture]:
    return [
        Lecture(
            course_id=course.id,
            position=0,
            title="Mean and median",
            video_url="https://cdn.example.com/videos/mean.mp4",
        ),
        Lecture(
            course_id=course.id,
            position=1,
            title="Variance",
            video_url="https://cdn.example.com/videos/variance.mp4",
        ),
        Lecture(
            course_id=course.id,
            position=2,
            title="Guest lecture",
            video_url="https://www.youtube.com/watch?v=abc123",
        ),
    ]


@pytest.fixture
def quiz(course: Course) -> Quiz:
    """Three questions; correct answers are 1, 0, 2."""
    return Quiz(
        course_id=course.id,
        title="Statistics basics",
        questions=[
            Question("Mean of 1, 2, 3?", ["1", "2", "3"], 1),
            Question("Median of 1, 2, 9?", ["2", "4", "9"], 0),
            Question("Variance of 2, 2, 2?", ["2", "1", "0", "4"], 2),
        ],
    )
