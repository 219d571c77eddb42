"""Superadmin user management: list, detail, create, update, enable/disable, delete."""

import json
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, require_superadmin
from app.api.handlers import format_validation_errors
from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import ValidationFailedError
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.users import (
    ToggleUserRequest,
    UserCreate,
    UserData,
    UserPublic,
    UsersListData,
    UserUpdate,
)
from app.services import users as users_service

router = APIRouter()


def _other_user_toggle(
    user_id: str,
    actor: Annotated[CurrentUser, Depends(require_superadmin)],
) -> int:
    """Dependency: the target id, refusing the actor's own account before the body is read."""
    return users_service.ensure_not_self(actor.id, user_id, "change the status of")


def _other_user_delete(
    user_id: str,
    actor: Annotated[CurrentUser, Depends(require_superadmin)],
) -> int:
    return users_service.ensure_not_self(actor.id, user_id, "delete")


async def _parse_toggle_body(request: Request) -> ToggleUserRequest:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationFailedError.for_field("body", "Request body must be valid JSON") from e
    try:
        return ToggleUserRequest.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailedError(errors=format_validation_errors(e.errors())) from e


@router.get("/users", response_model=ApiResponse[UsersListData])
def list_users(
    _actor: Annotated[CurrentUser, Depends(require_superadmin)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UsersListData]:
    """List all users, newest first (superadmin only)."""
    users = users_service.list_users(db)
    return ApiResponse(
        data=UsersListData(
            users=[UserPublic.model_validate(u) for u in users],
            total_users=len(users),
        )
    )


@router.get("/users/{user_id}", response_model=ApiResponse[UserData])
def get_user(
    user_id: str,
    _actor: Annotated[CurrentUser, Depends(require_superadmin)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserData]:
    user = users_service.get_user(db, user_id)
    return ApiResponse(data=UserData(user=UserPublic.model_validate(user)))


@router.post("/users", response_model=ApiResponse[UserData], status_code=201)
def create_user(
    body: UserCreate,
    _actor: Annotated[CurrentUser, Depends(require_superadmin)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ApiResponse[UserData]:
    """Create an enabled account; role defaults to admin."""
    user = users_service.create_user(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        rounds=settings.BCRYPT_ROUNDS,
    )
    return ApiResponse(
        message="User created successfully",
        data=UserData(user=UserPublic.model_validate(user)),
    )


@router.api_route(
    "/users/{user_id}",
    methods=["PUT", "PATCH"],
    response_model=ApiResponse[UserData],
)
def update_user(
    user_id: str,
    body: UserUpdate,
    actor: Annotated[CurrentUser, Depends(require_superadmin)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserData]:
    """Update name, email or role. Changing your own role is refused."""
    user = users_service.update_user(db, actor.id, user_id, body)
    return ApiResponse(
        message="User updated successfully",
        data=UserData(user=UserPublic.model_validate(user)),
    )


@router.patch("/users/{user_id}/toggle", response_model=ApiResponse[UserData])
async def toggle_user(
    request: Request,
    target_id: Annotated[int, Depends(_other_user_toggle)],
    actor: Annotated[CurrentUser, Depends(require_superadmin)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserData]:
    """
    Enable or disable another user's account. Body: {"enabled": true|false}.

    The body is parsed only after the self-reference check, so targeting your
    own account is refused whatever the body contains.
    """
    body = await _parse_toggle_body(request)
    user = users_service.set_enabled(db, actor.id, target_id, body.enabled)
    return ApiResponse(
        message=f"User {'enabled' if user.enabled else 'disabled'} successfully",
        data=UserData(user=UserPublic.model_validate(user)),
    )


@router.delete("/users/{user_id}", response_model=ApiResponse[None])
def delete_user(
    target_id: Annotated[int, Depends(_other_user_delete)],
    actor: Annotated[CurrentUser, Depends(require_superadmin)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    """Permanently delete another user's account."""
    users_service.delete_user(db, actor.id, target_id)
    return ApiResponse(message="User deleted successfully")
