"""Tests for auth security functions."""

from datetime import timedelta
from unittest.mock import Mock
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from scholarsync.auth.permissions import UserRole
from scholarsync.auth.security import (
    create_access_token,
    decode_access_token,
    extract_identity,
)
from scholarsync.config.settings import get_settings


class TestAccessToken:
    """Tests for access token round trips and rejection."""

    def test_create_and_decode(self) -> None:
        user_id = str(uuid4())
        token = create_access_token({"sub": user_id, "email": "ana@example.com"})
        payload = decode_access_token(token)

        assert payload["sub"] == user_id
        assert payload["email"] == "ana@example.com"
        assert payload["aud"] == get_settings().auth_audience
        assert "exp" in payload
        assert "iat" in payload

    def test_expired_token(self) -> None:
        token = create_access_token(
            {"sub": str(uuid4())}, expires_delta=timedelta(seconds=-1)
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_missing_subject(self) -> None:
        token = create_access_token({"email": "ana@example.com"})
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_audience(self) -> None:
        token = create_access_token({"sub": str(uuid4()), "aud": "someone-else"})
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_signature(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {"sub": str(uuid4()), "aud": settings.auth_audience},
            "another-secret-key-that-is-long-enough!!",
            algorithm=settings.auth_algorithm,
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_garbage_token(self) -> None:
        with pytest.raises(JWTError):
            decode_access_token("not.a.token")


class TestExtractIdentity:
    """Tests for reading the caller out of a decoded payload."""

    def test_reads_user_metadata(self) -> None:
        user_id = str(uuid4())
        identity = extract_identity(
            {
                "sub": user_id,
                "email": "prof@example.com",
                "user_metadata": {"role": "instructor", "name": "Prof. Lima"},
            }
        )
        assert identity == {
            "id": user_id,
            "email": "prof@example.com",
            "role": "instructor",
            "name": "Prof. Lima",
        }

    def test_top_level_claims(self) -> None:
        identity = extract_identity(
            {"sub": "abc", "email": "x@example.com", "role": "admin", "name": "X"}
        )
        assert identity["role"] == "admin"
        assert identity["name"] == "X"

    def test_defaults(self) -> None:
        """Missing role means student; missing name falls back to the email."""
        identity = extract_identity({"sub": "abc", "email": "ana.souza@example.com"})
        assert identity["role"] == UserRole.STUDENT.value
        assert identity["name"] == "ana.souza"

    def test_unknown_role_degrades_to_student(self) -> None:
        identity = extract_identity({"sub": "abc", "role": "authenticated"})
        assert identity["role"] == "student"
        assert identity["email"] == ""


class TestCurrentUserDependency:
    """Bearer token handling on a protected route."""

    @pytest.fixture(autouse=True)
    def _certificate_service(self, app) -> None:
        app.state.certificate_service = Mock()

    def test_missing_token(self, client) -> None:
        response = client.get("/v1/certificates")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_malformed_header(self, client) -> None:
        response = client.get(
            "/v1/certificates", headers={"Authorization": "Token abc"}
        )
        assert response.status_code == 401

    def test_invalid_token(self, client) -> None:
        response = client.get(
            "/v1/certificates", headers={"Authorization": "Bearer not.a.token"}
        )
        assert response.status_code == 401
