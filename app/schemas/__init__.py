"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginData,
    LoginRequest,
)
from app.schemas.common import ApiResponse, CamelModel, ErrorResponse, FieldError
from app.schemas.features import (
    AttachmentOut,
    FeatureCreate,
    FeatureData,
    FeatureListData,
    FeatureOut,
    FeatureQuery,
    FeatureStats,
    FeatureUpdate,
    Pagination,
)
from app.schemas.health import HealthResponse
from app.schemas.upload import SingleUploadData, StoredFileOut, UploadedAttachmentsData
from app.schemas.users import (
    ToggleUserRequest,
    UserCreate,
    UserData,
    UserPublic,
    UsersListData,
    UserUpdate,
)

__all__ = [
    "ApiResponse",
    "AttachmentOut",
    "CamelModel",
    "ChangePasswordRequest",
    "CurrentUser",
    "ErrorResponse",
    "FeatureCreate",
    "FeatureData",
    "FeatureListData",
    "FeatureOut",
    "FeatureQuery",
    "FeatureStats",
    "FeatureUpdate",
    "FieldError",
    "HealthResponse",
    "LoginData",
    "LoginRequest",
    "Pagination",
    "SingleUploadData",
    "StoredFileOut",
    "ToggleUserRequest",
    "UploadedAttachmentsData",
    "UserCreate",
    "UserData",
    "UserPublic",
    "UserUpdate",
    "UsersListData",
]
