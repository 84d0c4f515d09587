"""JWT verification for tokens issued by the hosted identity provider.

Sign-up, login and session persistence happen at the provider; this service
only verifies the bearer token and reads the caller's identity from it. The
role and display name are taken from ``user_metadata`` when the provider
nests them there, falling back to top-level claims.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from scholarsync.auth.permissions import UserRole
from scholarsync.config.settings import get_settings


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Mint an access token signed with the shared key.

    Used by local tooling and tests to impersonate the provider.

    Args:
        data: Claims, typically ``{"sub", "email", "role", "name"}``.
        expires_delta: Token lifetime (default from settings).
    """
    settings = get_settings()

    now = datetime.now(UTC)
    to_encode = data.copy()
    to_encode.update(
        {
            "exp": now
            + (
                expires_delta
                or timedelta(minutes=settings.auth_access_token_expire_minutes)
            ),
            "iat": now,
        }
    )
    if settings.auth_audience:
        to_encode.setdefault("aud", settings.auth_audience)

    return jwt.encode(
        to_encode,
        settings.auth_secret_key,
        algorithm=settings.auth_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Validates the signature, expiry and audience, and requires a subject.

    Raises:
        JWTError: If the token is invalid, expired or has no subject.
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
        audience=settings.auth_audience,
    )

    if not payload.get("sub"):
        msg = "Token missing subject claim"
        raise JWTError(msg)

    return payload


def extract_identity(payload: dict[str, Any]) -> dict[str, str]:
    """Pull id, email, role and display name out of a decoded payload.

    Unknown roles degrade to ``student``.
    """
    metadata = payload.get("user_metadata") or {}

    role = metadata.get("role") or payload.get("role") or UserRole.STUDENT.value
    if role not in {r.value for r in UserRole}:
        role = UserRole.STUDENT.value

    email = payload.get("email") or ""
    name = metadata.get("name") or payload.get("name") or email.split("@")[0]

    return {
        "id": str(payload["sub"]),
        "email": email,
        "role": role,
        "name": name,
    }
