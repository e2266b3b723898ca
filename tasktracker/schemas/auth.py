"""Authentication and profile schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import EmailStr, Field, StringConstraints, field_validator

from tasktracker.models.mixins import as_utc
from tasktracker.schemas.common import ApiModel

UserName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]


class UserRegister(ApiModel):
    """User registration request."""

    name: UserName
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserLogin(ApiModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ProfileUpdate(ApiModel):
    """Profile update request. Email cannot be changed."""

    name: UserName | None = None
    avatar: str | None = Field(None, max_length=500)


class PasswordChange(ApiModel):
    """Password change request."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)


class UserResponse(ApiModel):
    """Public user profile. The password hash is never part of it."""

    id: int
    name: str
    email: str
    avatar: str
    is_active: bool
    last_login: datetime | None
    created_at: datetime
    updated_at: datetime
    profile_url: str

    @field_validator("last_login", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class AuthData(ApiModel):
    """Payload returned by register and login."""

    user: UserResponse
    token: str


class UserData(ApiModel):
    """Payload wrapping a single user."""

    user: UserResponse
