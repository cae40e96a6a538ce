"""Actor domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


# Constants for validation
MAX_NAME_LENGTH = 80


class UserRole(StrEnum):
    """User role in the project."""

    ADMIN = "admin"
    MEMBER = "member"


class Actor(BaseModel):
    """The authenticated user performing an operation.

    Identity resolution happens upstream; the engine only trusts what it is handed.
    """

    id: str = Field(..., min_length=1, description="User ID")
    name: str = Field(default="Unknown User", description="Display name of the user")
    role: UserRole = Field(default=UserRole.MEMBER, description="User role")

    @field_validator("name")
    @classmethod
    def validate_name_length(cls, v: str) -> str:
        """Trim the display name and cap its length."""
        v = v.strip() or "Unknown User"
        if len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"Name too long (max {MAX_NAME_LENGTH} characters)")
        return v

    @property
    def is_admin(self) -> bool:
        """Whether the actor holds the admin role."""
        return self.role == UserRole.ADMIN
