"""Credential store: user lookup, creation, login, and superadmin account management."""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    DuplicateIdentityError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationFailedError,
    parse_id,
)
from app.core.security import (
    BCRYPT_ROUNDS,
    ROLE_ADMIN,
    hash_password,
    verify_password,
)
from app.models.user import User
from app.schemas.users import UserUpdate, normalize_identity

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"
INVALID_CREDENTIALS = "Invalid credentials"
ACCOUNT_DISABLED = "Account is disabled. Please contact administrator."


def find_by_identity(db: Session, value: str) -> User | None:
    """Look up a user by email (or bootstrap username), case-insensitively."""
    identity = normalize_identity(value or "")
    if not identity:
        return None
    return db.query(User).filter(User.email == identity).first()


def find_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user(db: Session, user_id: str | int) -> User:
    """Return the user or raise NotFoundError (also for malformed ids)."""
    user = find_by_id(db, parse_id(user_id, USER_NOT_FOUND))
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def _commit_identity_change(db: Session) -> None:
    """Commit, mapping a unique-email violation to DuplicateIdentityError."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateIdentityError() from e


def create_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: str = ROLE_ADMIN,
    rounds: int = BCRYPT_ROUNDS,
) -> User:
    """Create an enabled account; the password is hashed before it is stored."""
    identity = normalize_identity(email)
    if find_by_identity(db, identity) is not None:
        raise DuplicateIdentityError()
    user = User(
        name=name.strip(),
        email=identity,
        password_hash=hash_password(password, rounds=rounds),
        role=role,
        enabled=True,
    )
    db.add(user)
    _commit_identity_change(db)
    db.refresh(user)
    logger.info("Created user id=%s role=%s", user.id, user.role)
    return user


def authenticate(db: Session, identity: str, password: str) -> User:
    """
    Check credentials and stamp last_login on success.

    Unknown identity and wrong password share one message; a disabled account
    is rejected only after its password has been verified. Failed attempts
    never touch last_login.
    """
    user = find_by_identity(db, identity)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login failed: invalid credentials")
        raise UnauthenticatedError(INVALID_CREDENTIALS)
    if not user.enabled:
        logger.info("Login refused for disabled user id=%s", user.id)
        raise UnauthenticatedError(ACCOUNT_DISABLED)
    user.last_login = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    logger.info("Login succeeded for user id=%s", user.id)
    return user


def change_password(
    db: Session,
    user_id: int,
    current_password: str,
    new_password: str,
    rounds: int = BCRYPT_ROUNDS,
) -> User:
    user = get_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValidationFailedError.for_field(
            "currentPassword", "Current password is incorrect"
        )
    if current_password == new_password:
        raise ValidationFailedError.for_field(
            "newPassword", "New password must be different from current password"
        )
    user.password_hash = hash_password(new_password, rounds=rounds)
    db.commit()
    db.refresh(user)
    logger.info("Password changed for user id=%s", user.id)
    return user


def ensure_not_self(actor_id: int, user_id: str | int, action: str) -> int:
    """Parse user_id and refuse when it is the acting user's own account."""
    target_id = parse_id(user_id, USER_NOT_FOUND)
    if target_id == actor_id:
        raise ForbiddenError(f"Cannot {action} your own account")
    return target_id


def update_user(db: Session, actor_id: int, user_id: str | int, data: UserUpdate) -> User:
    """Apply name/email/role changes; nobody may change their own role."""
    user = get_user(db, user_id)
    if data.role is not None and data.role != user.role and user.id == actor_id:
        raise ForbiddenError("Cannot change your own role")
    if data.email is not None and data.email != user.email:
        if find_by_identity(db, data.email) is not None:
            raise DuplicateIdentityError("Email already exists")
        user.email = data.email
    if data.name is not None:
        user.name = data.name
    if data.role is not None:
        user.role = data.role
    _commit_identity_change(db)
    db.refresh(user)
    logger.info("Updated user id=%s by actor id=%s", user.id, actor_id)
    return user


def set_enabled(db: Session, actor_id: int, user_id: str | int, enabled: bool) -> User:
    target_id = ensure_not_self(actor_id, user_id, "change the status of")
    user = get_user(db, target_id)
    user.enabled = enabled
    db.commit()
    db.refresh(user)
    logger.info(
        "User id=%s %s by actor id=%s",
        user.id,
        "enabled" if enabled else "disabled",
        actor_id,
    )
    return user


def delete_user(db: Session, actor_id: int, user_id: str | int) -> None:
    target_id = ensure_not_self(actor_id, user_id, "delete")
    user = get_user(db, target_id)
    db.delete(user)
    db.commit()
    logger.info("Deleted user id=%s by actor id=%s", target_id, actor_id)
