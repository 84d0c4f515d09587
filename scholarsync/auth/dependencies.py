"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from the bearer token
- Role-based access control
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from scholarsync.auth.permissions import UserRole, has_permission
from scholarsync.auth.schemas import AuthenticatedUser
from scholarsync.auth.security import decode_access_token, extract_identity
from scholarsync.core.context import set_user_id


def get_token_from_header(request: Request) -> str | None:
    """Extract the Bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser:
    """Get the authenticated caller from the JWT.

    Raises:
        HTTPException(401): If the token is missing, invalid or expired.
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        user = AuthenticatedUser(**extract_identity(payload))
    except (JWTError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    set_user_id(user.id)
    return user


def require_permission(required_role: UserRole):
    """Create a dependency requiring at least a permission level.

    Example:
        @router.post("/courses")
        async def create(user: Annotated[
            AuthenticatedUser, Depends(require_permission(UserRole.INSTRUCTOR))
        ]): ...
    """

    async def permission_checker(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if not has_permission(user.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
InstructorUser = Annotated[
    AuthenticatedUser, Depends(require_permission(UserRole.INSTRUCTOR))
]
