"""JWT login, current-identity, logout and self-service password endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_current_user
from app.core.config import Settings
from app.core.database import get_db
from app.core.security import create_access_token
from app.schemas.auth import ChangePasswordRequest, CurrentUser, LoginData, LoginRequest
from app.schemas.common import ApiResponse
from app.schemas.users import UserData, UserPublic
from app.services import users as users_service

router = APIRouter()


@router.post("/login", response_model=ApiResponse[LoginData])
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ApiResponse[LoginData]:
    """
    Authenticate with email (or username) and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    user = users_service.authenticate(db, body.email, body.password)
    token = create_access_token(sub=user.id, role=user.role, settings=settings, email=user.email)
    return ApiResponse(
        message="Login successful",
        data=LoginData(token=token, user=UserPublic.model_validate(user)),
    )


@router.get("/me", response_model=ApiResponse[UserData])
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[UserData]:
    """Return the caller's sanitized identity."""
    return ApiResponse(data=UserData(user=current_user))


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[None]:
    """
    Acknowledge a logout. Tokens are not revoked server-side: the client
    discards its token, which otherwise stays valid until it expires.
    """
    return ApiResponse(message="Logged out successfully")


@router.post("/verify-token", response_model=ApiResponse[UserData])
def verify_token(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[UserData]:
    return ApiResponse(message="Token is valid", data=UserData(user=current_user))


@router.post("/change-password", response_model=ApiResponse[UserData])
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ApiResponse[UserData]:
    """Change the caller's own password after checking the current one."""
    user = users_service.change_password(
        db,
        current_user.id,
        body.current_password,
        body.new_password,
        rounds=settings.BCRYPT_ROUNDS,
    )
    return ApiResponse(
        message="Password updated successfully",
        data=UserData(user=UserPublic.model_validate(user)),
    )
