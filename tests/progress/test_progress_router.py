"""Tests for progress endpoints."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scholarsync.progress.service import ProgressService


@pytest.fixture
def course_service(course, lectures) -> Mock:
    service = Mock()
    service.get_course = AsyncMock(return_value=course)
    service.list_lectures = AsyncMock(return_value=lectures)
    service.require_access = AsyncMock(return_value=course)
    service.get_lecture = AsyncMock(return_value=lectures[2])
    return service


@pytest.fixture
def progress_service(app: FastAPI, mock_session, course_service) -> ProgressService:
    service = ProgressService(mock_session, "test_keyspace", course_service=course_service)
    app.state.progress_service = service
    app.state.course_service = course_service
    return service


@pytest.fixture
def headers(make_token, student) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(student.id)}"}


def open_session(client: TestClient, course, headers) -> dict:
    response = client.post(
        "/v1/progress/sessions", json={"course_id": str(course.id)}, headers=headers
    )
    assert response.status_code == 201
    return response.json()


class TestViewingSessionEndpoints:
    """Playback reports through a viewing session."""

    def test_open_lists_untracked_lectures(
        self, client, progress_service, course, lectures, headers
    ):
        data = open_session(client, course, headers)
        assert data["course_id"] == str(course.id)
        assert data["watched_lecture_ids"] == []
        assert data["untracked_lecture_ids"] == [str(lectures[2].id)]

    def test_report_crossing_threshold(
        self, client, progress_service, course, lectures, headers
    ):
        session_id = open_session(client, course, headers)["session_id"]
        url = f"/v1/progress/sessions/{session_id}/video"

        response = client.put(
            url,
            json={
                "lecture_id": str(lectures[0].id),
                "position_seconds": 40,
                "duration_seconds": 100,
            },
            headers=headers,
        )
        assert response.json()["completed_now"] is False

        response = client.put(
            url,
            json={
                "lecture_id": str(lectures[0].id),
                "position_seconds": 92,
                "duration_seconds": 100,
            },
            headers=headers,
        )
        data = response.json()
        assert data["completed_now"] is True
        assert data["watched"] is True
        assert data["saved"] is True

    def test_unknown_lecture(self, client, progress_service, course, headers):
        session_id = open_session(client, course, headers)["session_id"]
        response = client.put(
            f"/v1/progress/sessions/{session_id}/video",
            json={
                "lecture_id": str(uuid4()),
                "position_seconds": 10,
                "duration_seconds": 100,
            },
            headers=headers,
        )
        assert response.status_code == 404

    def test_negative_position_is_rejected(
        self, client, progress_service, course, lectures, headers
    ):
        session_id = open_session(client, course, headers)["session_id"]
        response = client.put(
            f"/v1/progress/sessions/{session_id}/video",
            json={
                "lecture_id": str(lectures[0].id),
                "position_seconds": -1,
                "duration_seconds": 100,
            },
            headers=headers,
        )
        assert response.status_code == 422

    def test_session_of_another_student(
        self, client, progress_service, course, headers, make_token
    ):
        session_id = open_session(client, course, headers)["session_id"]
        other = {"Authorization": f"Bearer {make_token()}"}

        response = client.get(f"/v1/progress/sessions/{session_id}", headers=other)
        assert response.status_code == 404


class TestWatchedFlagEndpoints:
    """Manual watched flags and completion."""

    def test_mark_external_lecture_watched(
        self, client, progress_service, course, lectures, headers
    ):
        response = client.put(
            f"/v1/progress/lectures/{lectures[2].id}/watched",
            json={"course_id": str(course.id)},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["watched"] is True

    def test_lecture_not_in_course(
        self, client, progress_service, course_service, course, headers
    ):
        course_service.get_lecture = AsyncMock(return_value=None)
        response = client.put(
            f"/v1/progress/lectures/{uuid4()}/watched",
            json={"course_id": str(course.id)},
            headers=headers,
        )
        assert response.status_code == 404

    def test_completion(
        self, client, progress_service, mock_session, result, course, lectures, student, headers
    ):
        mock_session.aexecute.return_value = result(
            [
                Mock(
                    student_id=student.id,
                    lecture_id=lec.id,
                    course_id=course.id,
                    watched=True,
                    updated_at=None,
                )
                for lec in lectures
            ]
        )

        response = client.get(
            f"/v1/progress/courses/{course.id}/completion", headers=headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["lectures_watched"] == 3
        assert data["lectures_total"] == 3
        assert data["completed"] is True
