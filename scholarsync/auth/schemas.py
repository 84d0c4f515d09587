"""Pydantic schemas for the authenticated caller."""

from uuid import UUID

from pydantic import BaseModel, Field

from scholarsync.auth.permissions import UserRole


class AuthenticatedUser(BaseModel):
    """Identity carried by a verified bearer token."""

    id: UUID
    email: str = ""
    role: UserRole = UserRole.STUDENT
    name: str = Field("", description="Display name, printed on certificates")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
