"""Request/response schemas for auth endpoints."""

from pydantic import Field, field_validator

from app.core.security import (
    IDENTITY_MAX_LEN,
    IDENTITY_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)
from app.schemas.common import CamelModel
from app.schemas.users import UserPublic, normalize_identity


class LoginRequest(CamelModel):
    """Credentials for login. email may also be a bootstrap username."""

    email: str = Field(
        ...,
        min_length=IDENTITY_MIN_LEN,
        max_length=IDENTITY_MAX_LEN,
        description="Email address or username",
    )
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = normalize_identity(v)
        if not v:
            raise ValueError("Please provide a valid email address")
        return v


class CurrentUser(UserPublic):
    """Authenticated identity attached to a request (role re-read from the database)."""


class LoginData(CamelModel):
    """JWT bearer token and the sanitized user returned after a successful login."""

    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserPublic


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
