"""Feature endpoints: public list/detail/stats, admin-only create/update/delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_optional_user, get_store, require_admin
from app.core.database import get_db
from app.core.storage import AttachmentStore
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.features import (
    FeatureCreate,
    FeatureData,
    FeatureListData,
    FeatureOut,
    FeatureQuery,
    FeatureStats,
    FeatureUpdate,
    PriorityFilter,
    SortField,
    SortOrder,
    StatusFilter,
)
from app.services import features as features_service

router = APIRouter()

MAX_PAGE_SIZE = 100
# Keeps (page - 1) * limit inside a 64-bit OFFSET.
MAX_PAGE = 2**31 - 1


@router.get("", response_model=ApiResponse[FeatureListData])
def list_features(
    db: Annotated[Session, Depends(get_db)],
    _viewer: Annotated[CurrentUser | None, Depends(get_optional_user)],
    page: Annotated[int, Query(ge=1, le=MAX_PAGE)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 10,
    status: Annotated[StatusFilter | None, Query()] = None,
    priority: Annotated[PriorityFilter | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
    sort_by: Annotated[SortField, Query(alias="sortBy")] = "updatedAt",
    sort_order: Annotated[SortOrder, Query(alias="sortOrder")] = "desc",
) -> ApiResponse[FeatureListData]:
    """
    Paginated, filterable, searchable feature list (public).

    - **status** / **priority**: exact match; `all` or omitted means no filter.
    - **search**: case-insensitive substring of name, description or any tag.
    - **sortBy** / **sortOrder**: default `updatedAt` / `desc`.
    """
    query = FeatureQuery(
        page=page,
        limit=limit,
        status=status,
        priority=priority,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    features, pagination = features_service.list_features(db, query)
    return ApiResponse(
        data=FeatureListData(
            features=[FeatureOut.model_validate(f) for f in features],
            pagination=pagination,
        )
    )


@router.get("/stats", response_model=ApiResponse[FeatureStats])
def get_stats(
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[FeatureStats]:
    """Feature counts by status (with total) and by priority."""
    return ApiResponse(data=FeatureStats(**features_service.feature_stats(db)))


@router.get("/{feature_id}", response_model=ApiResponse[FeatureData])
def get_feature(
    feature_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[FeatureData]:
    feature = features_service.get_feature(db, feature_id)
    return ApiResponse(data=FeatureData(feature=FeatureOut.model_validate(feature)))


@router.post("", response_model=ApiResponse[FeatureData], status_code=201)
def create_feature(
    body: FeatureCreate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[FeatureData]:
    """Create a feature. author defaults to the acting admin's name."""
    feature = features_service.create_feature(db, body, default_author=admin.name)
    return ApiResponse(
        message="Feature created successfully",
        data=FeatureData(feature=FeatureOut.model_validate(feature)),
    )


@router.api_route(
    "/{feature_id}",
    methods=["PUT", "PATCH"],
    response_model=ApiResponse[FeatureData],
)
def update_feature(
    feature_id: str,
    body: FeatureUpdate,
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[FeatureData]:
    feature = features_service.update_feature(db, feature_id, body)
    return ApiResponse(
        message="Feature updated successfully",
        data=FeatureData(feature=FeatureOut.model_validate(feature)),
    )


@router.delete("/{feature_id}", response_model=ApiResponse[None])
def delete_feature(
    feature_id: str,
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[AttachmentStore, Depends(get_store)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[None]:
    """Delete a feature and, best-effort, its attachment files."""
    features_service.delete_feature(db, store, feature_id)
    return ApiResponse(message="Feature deleted successfully")


@router.delete(
    "/{feature_id}/attachments/{attachment_id}",
    response_model=ApiResponse[FeatureData],
)
def delete_attachment(
    feature_id: str,
    attachment_id: str,
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[AttachmentStore, Depends(get_store)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[FeatureData]:
    feature = features_service.delete_attachment(db, store, feature_id, attachment_id)
    return ApiResponse(
        message="Attachment deleted successfully",
        data=FeatureData(feature=FeatureOut.model_validate(feature)),
    )
