"""Pydantic schemas for features: create/update payloads, list query, and responses."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field, ValidationInfo, field_validator

from app.schemas.common import CamelModel

FeatureStatus = Literal["planned", "in-progress", "completed", "on-hold", "cancelled"]
FeaturePriority = Literal["low", "medium", "high", "critical"]
SortField = Literal["createdAt", "updatedAt", "name", "status", "priority"]
SortOrder = Literal["asc", "desc"]
# List filters also accept "all" (no filter), as sent by the dashboard dropdowns.
StatusFilter = Literal["all", "planned", "in-progress", "completed", "on-hold", "cancelled"]
PriorityFilter = Literal["all", "low", "medium", "high", "critical"]

FEATURE_STATUSES: tuple[str, ...] = ("planned", "in-progress", "completed", "on-hold", "cancelled")
FEATURE_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "critical")

DEFAULT_AUTHOR = "Development Team"

MAX_TAGS = 10
MAX_TAG_LENGTH = 50

# Optional long-text fields: (min, max) length when a value is given.
OPTIONAL_TEXT_BOUNDS: dict[str, tuple[int, int]] = {
    "purpose": (10, 2000),
    "implementation": (10, 3000),
    "technical_details": (10, 3000),
}


def _validate_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    if len(tags) > MAX_TAGS:
        raise ValueError(f"Maximum {MAX_TAGS} tags allowed")
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if not tag or len(tag) > MAX_TAG_LENGTH:
            raise ValueError(
                f"Each tag must be a non-empty string with maximum {MAX_TAG_LENGTH} characters"
            )
        cleaned.append(tag)
    return cleaned


def _validate_optional_text(field: str, value: str | None) -> str | None:
    """Blank means 'no value' (stored as ''); otherwise the field's bounds apply."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return ""
    low, high = OPTIONAL_TEXT_BOUNDS[field]
    if not low <= len(value) <= high:
        raise ValueError(f"Must be between {low} and {high} characters")
    return value


class _FeatureInput(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("tags", check_fields=False)
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _validate_tags(v)

    @field_validator("purpose", "implementation", "technical_details", check_fields=False)
    @classmethod
    def validate_optional_text(cls, v: str | None, info: ValidationInfo) -> str | None:
        return _validate_optional_text(info.field_name, v)


class FeatureCreate(_FeatureInput):
    """Payload for creating a feature. Only name and description are required."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=10, max_length=1000)
    purpose: str | None = None
    implementation: str | None = None
    technical_details: str | None = None
    status: FeatureStatus = "planned"
    priority: FeaturePriority = "medium"
    tags: list[str] = Field(default_factory=list)
    author: str | None = Field(default=None, min_length=2, max_length=100)


class FeatureUpdate(_FeatureInput):
    """Partial update; omitted or null fields keep their current value."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=10, max_length=1000)
    purpose: str | None = None
    implementation: str | None = None
    technical_details: str | None = None
    status: FeatureStatus | None = None
    priority: FeaturePriority | None = None
    tags: list[str] | None = None
    author: str | None = Field(default=None, min_length=2, max_length=100)


class AttachmentOut(CamelModel):
    id: int
    file_name: str
    file_type: str
    file_size: int
    url: str
    public_id: str
    uploaded_at: datetime | None = None


class FeatureOut(CamelModel):
    id: int
    name: str
    description: str
    purpose: str
    implementation: str
    technical_details: str
    status: str
    priority: str
    tags: list[str]
    author: str
    attachments: list[AttachmentOut] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class FeatureQuery:
    """Filter, search, sort and paging options for the feature list."""

    page: int = 1
    limit: int = 10
    status: str | None = None
    priority: str | None = None
    search: str | None = None
    sort_by: str = "updatedAt"
    sort_order: str = "desc"


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_features: int
    total_planned: int
    total_in_progress: int
    total_completed: int
    total_on_hold: int
    total_cancelled: int
    has_next_page: bool
    has_prev_page: bool
    limit: int


class FeatureListData(CamelModel):
    features: list[FeatureOut]
    pagination: Pagination


class FeatureData(CamelModel):
    feature: FeatureOut


class FeatureStats(CamelModel):
    """Counts by status (plus total) and by priority; keys are the raw enum values."""

    status: dict[str, int]
    priority: dict[str, int]
