"""Response envelope and base model shared by all endpoints."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python; accepts either on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FieldError(BaseModel):
    """One failing field in a validation error response."""

    field: str
    message: str


class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope: {success, message, data}."""

    success: bool = Field(default=True)
    message: str | None = Field(default=None)
    data: T | None = Field(default=None)


class ErrorResponse(BaseModel):
    """Standard failure envelope: {success: false, message, errors}."""

    success: bool = Field(default=False)
    message: str
    errors: list[FieldError] | None = Field(default=None)
