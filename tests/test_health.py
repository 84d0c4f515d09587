"""Tests for health endpoints."""

from unittest.mock import Mock

from fastapi import FastAPI
from fastapi.testclient import TestClient


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness(client: TestClient) -> None:
    """Test the readiness endpoint."""
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert "environment" in data
    assert "debug" in data
    assert data["cassandra"] is False
    assert data["redis"] is False
    assert data["active_quiz_sessions"] == 0


def test_readiness_counts_quiz_sessions(app: FastAPI, client: TestClient) -> None:
    """Live quiz sessions are reported by the readiness probe."""
    app.state.quiz_service = Mock(active_session_count=2)
    response = client.get("/health/ready")
    assert response.json()["active_quiz_sessions"] == 2


def test_health(client: TestClient) -> None:
    """Test the general health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "scholarsync"
    assert "version" in data
    assert "environment" in data


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert "ScholarSync" in data["message"]
    assert "version" in data


def test_request_id_header(client: TestClient) -> None:
    """Every response carries a request id."""
    response = client.get("/health/live")
    assert response.headers.get("X-Request-ID")
