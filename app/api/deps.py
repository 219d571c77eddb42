"""Request dependencies: settings, attachment store, bearer auth and role gates."""

import logging
from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import ForbiddenError, UnauthenticatedError
from app.core.security import ROLE_ADMIN, ROLE_SUPERADMIN, decode_access_token
from app.core.storage import AttachmentStore
from app.models.user import User
from app.schemas.auth import CurrentUser
from app.services import users as users_service

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


def get_store(request: Request) -> AttachmentStore:
    return request.app.state.store


def _resolve_user(
    credentials: HTTPAuthorizationCredentials | None,
    db: Session,
    settings: Settings,
) -> User:
    """Bearer header -> verified token -> enabled user, or UnauthenticatedError."""
    # HTTPBearer matches the scheme case-insensitively; only "Bearer" is accepted here.
    if credentials is None or credentials.scheme != "Bearer" or not credentials.credentials:
        raise UnauthenticatedError("Access denied. No token provided or invalid format.")
    try:
        payload = decode_access_token(credentials.credentials, settings)
    except jwt.PyJWTError:
        raise UnauthenticatedError("Invalid or expired token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthenticatedError("Invalid token payload")
    # Role and enabled state come from the database, never from the token.
    user = users_service.find_by_id(db, user_id)
    if user is None or not user.enabled:
        raise UnauthenticatedError("Invalid token or user not active.")
    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser:
    """Dependency: require valid Bearer JWT and return the current user. Raises 401 if missing or invalid."""
    user = _resolve_user(credentials, db, settings)
    return CurrentUser.model_validate(user)


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser | None:
    """Like get_current_user, but anonymous (None) instead of 401 on any failure."""
    if credentials is None:
        return None
    try:
        user = _resolve_user(credentials, db, settings)
    except UnauthenticatedError as e:
        logger.debug("Ignoring bearer token on public route: %s", e.message)
        return None
    return CurrentUser.model_validate(user)


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    """Build a dependency that admits only users whose stored role is in roles (403 otherwise)."""
    allowed = frozenset(roles)

    def role_gate(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise ForbiddenError(
                "Super admin access required"
                if allowed == {ROLE_SUPERADMIN}
                else "Admin access required"
            )
        return current_user

    return role_gate


require_admin = require_roles(ROLE_ADMIN, ROLE_SUPERADMIN)
require_superadmin = require_roles(ROLE_SUPERADMIN)
