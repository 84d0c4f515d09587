"""Authentication against the hosted identity provider.

Provides:
- Bearer token verification
- Role hierarchy (student, instructor, admin)
"""

from .permissions import UserRole, has_permission
from .schemas import AuthenticatedUser


__all__ = [
    "AuthenticatedUser",
    "UserRole",
    "has_permission",
]
