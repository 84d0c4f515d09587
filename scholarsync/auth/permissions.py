"""Role-based access control for ScholarSync.

Hierarchical permission system:
- ADMIN (level 2): Full system access
- INSTRUCTOR (level 1): Create courses, lectures and quizzes
- STUDENT (level 0): Enroll, watch, take quizzes
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 0,
    UserRole.INSTRUCTOR: 1,
    UserRole.ADMIN: 2,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role; unknown roles map to 0."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.INSTRUCTOR)
        True
        >>> has_permission("student", "instructor")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    return UserRole.ADMIN.value == (role.value if isinstance(role, UserRole) else role)


def can_manage_course(
    user_id: str,
    role: UserRole | str,
    instructor_id: str | None,
) -> bool:
    """Admins manage every course; instructors only the ones they own."""
    if is_admin(role):
        return True
    return has_permission(role, UserRole.INSTRUCTOR) and user_id == instructor_id
