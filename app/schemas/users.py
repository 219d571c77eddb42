"""Request/response schemas for user accounts (superadmin user management)."""

from datetime import datetime
from typing import Literal

from pydantic import Field, StrictBool, field_validator

from app.core.security import (
    IDENTITY_MAX_LEN,
    IDENTITY_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)
from app.schemas.common import CamelModel

Role = Literal["user", "admin", "superadmin"]


def normalize_identity(value: str) -> str:
    """Emails (or bootstrap usernames) are compared trimmed and lower-cased."""
    return value.strip().lower()


def _clean_name(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Name must not be empty")
    return value


def _clean_identity(value: str | None) -> str | None:
    if value is None:
        return None
    value = normalize_identity(value)
    if not value:
        raise ValueError("Email must not be empty")
    return value


class UserPublic(CamelModel):
    """User as returned to clients; never includes the password hash."""

    id: int
    name: str
    email: str
    role: str
    enabled: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=IDENTITY_MIN_LEN, max_length=IDENTITY_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Role = "admin"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return _clean_identity(v)


class UserUpdate(CamelModel):
    """Partial update; fields left out are not changed."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(
        default=None, min_length=IDENTITY_MIN_LEN, max_length=IDENTITY_MAX_LEN
    )
    role: Role | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return _clean_identity(v)


class ToggleUserRequest(CamelModel):
    enabled: StrictBool = Field(..., description="New enabled state")


class UserData(CamelModel):
    user: UserPublic


class UsersListData(CamelModel):
    users: list[UserPublic]
    total_users: int = Field(..., ge=0)
