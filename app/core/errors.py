"""Typed application errors and their mapping to HTTP status codes."""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable failure kinds surfaced to API clients."""

    VALIDATION_FAILED = "ValidationFailed"
    UNAUTHENTICATED = "Unauthenticated"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    DUPLICATE_IDENTITY = "DuplicateIdentity"
    SERVER_ERROR = "ServerError"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE_IDENTITY: 400,
    ErrorKind.SERVER_ERROR: 500,
}


class AppError(Exception):
    """Base class for failures the API reports with a structured body."""

    kind: ErrorKind = ErrorKind.SERVER_ERROR
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationFailedError(AppError):
    kind = ErrorKind.VALIDATION_FAILED
    default_message = "Validation failed"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        return cls(errors=[{"field": field, "message": message}])


class UnauthenticatedError(AppError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Authentication required"


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class DuplicateIdentityError(AppError):
    kind = ErrorKind.DUPLICATE_IDENTITY
    default_message = "User with this email already exists"


def parse_id(value: str | int, not_found_message: str) -> int:
    """
    Parse a path identifier into a primary key.

    Malformed ids are reported as NotFound, the same as unknown ids, so callers
    never see id-parsing internals.
    """
    if isinstance(value, int):
        return value
    s = (value or "").strip()
    if not (s.isascii() and s.isdigit()):
        raise NotFoundError(not_found_message)
    parsed = int(s)
    if parsed < 1 or parsed > 2**63 - 1:
        raise NotFoundError(not_found_message)
    return parsed
