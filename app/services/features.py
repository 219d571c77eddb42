"""Feature queries and mutations: filtered/paginated listing, stats, CRUD with attachment cleanup."""

from __future__ import annotations

import logging
import math

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Query, Session

from app.core.errors import NotFoundError, parse_id
from app.core.storage import AttachmentStore, discard_blob
from app.models.feature import Attachment, Feature
from app.schemas.features import (
    DEFAULT_AUTHOR,
    FEATURE_PRIORITIES,
    FEATURE_STATUSES,
    FeatureCreate,
    FeatureQuery,
    FeatureUpdate,
    Pagination,
)

logger = logging.getLogger(__name__)

FEATURE_NOT_FOUND = "Feature not found"
ATTACHMENT_NOT_FOUND = "Attachment not found"

# Wire name of the sort key -> column.
SORT_COLUMNS = {
    "createdAt": Feature.created_at,
    "updatedAt": Feature.updated_at,
    "name": Feature.name,
    "status": Feature.status,
    "priority": Feature.priority,
}

# Filter value meaning "no filter" (sent by the dashboard's dropdowns).
ALL = "all"


def _like_pattern(term: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards in the term escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _filtered(db: Session, query: FeatureQuery) -> Query:
    q = db.query(Feature)
    if query.status and query.status != ALL:
        q = q.filter(Feature.status == query.status)
    if query.priority and query.priority != ALL:
        q = q.filter(Feature.priority == query.priority)
    term = (query.search or "").strip()
    if term:
        pattern = _like_pattern(term)
        q = q.filter(
            or_(
                Feature.name.ilike(pattern, escape="\\"),
                Feature.description.ilike(pattern, escape="\\"),
                cast(Feature.tags, String).ilike(pattern, escape="\\"),
            )
        )
    return q


def _counts_by(db: Session, column, keys: tuple[str, ...]) -> dict[str, int]:
    rows = db.query(column, func.count(Feature.id)).group_by(column).all()
    counts = dict.fromkeys(keys, 0)
    for key, count in rows:
        counts[key] = count
    return counts


def list_features(db: Session, query: FeatureQuery) -> tuple[list[Feature], Pagination]:
    """
    Return one page of features plus pagination info.

    totalFeatures and totalPages describe the filtered result; the per-status
    totals always describe the whole collection (dashboard counters).
    """
    filtered = _filtered(db, query)
    total = filtered.count()

    column = SORT_COLUMNS.get(query.sort_by, Feature.updated_at)
    if query.sort_order == "asc":
        ordering = (column.asc(), Feature.id.asc())
    else:
        ordering = (column.desc(), Feature.id.desc())

    offset = (query.page - 1) * query.limit
    features = filtered.order_by(*ordering).offset(offset).limit(query.limit).all()

    total_pages = math.ceil(total / query.limit) if total else 0
    by_status = _counts_by(db, Feature.status, FEATURE_STATUSES)
    pagination = Pagination(
        current_page=query.page,
        total_pages=total_pages,
        total_features=total,
        total_planned=by_status["planned"],
        total_in_progress=by_status["in-progress"],
        total_completed=by_status["completed"],
        total_on_hold=by_status["on-hold"],
        total_cancelled=by_status["cancelled"],
        has_next_page=query.page < total_pages,
        has_prev_page=query.page > 1,
        limit=query.limit,
    )
    return features, pagination


def feature_stats(db: Session) -> dict[str, dict[str, int]]:
    status_counts = _counts_by(db, Feature.status, FEATURE_STATUSES)
    total = db.query(func.count(Feature.id)).scalar() or 0
    return {
        "status": {"total": total, **status_counts},
        "priority": _counts_by(db, Feature.priority, FEATURE_PRIORITIES),
    }


def get_feature(db: Session, feature_id: str | int) -> Feature:
    """Return the feature or raise NotFoundError (also for malformed ids). Never mutates."""
    pk = parse_id(feature_id, FEATURE_NOT_FOUND)
    feature = db.query(Feature).filter(Feature.id == pk).first()
    if feature is None:
        raise NotFoundError(FEATURE_NOT_FOUND)
    return feature


def create_feature(
    db: Session, data: FeatureCreate, default_author: str | None = None
) -> Feature:
    feature = Feature(
        name=data.name,
        description=data.description,
        purpose=data.purpose or "",
        implementation=data.implementation or "",
        technical_details=data.technical_details or "",
        status=data.status,
        priority=data.priority,
        tags=list(data.tags),
        author=data.author or default_author or DEFAULT_AUTHOR,
    )
    db.add(feature)
    db.commit()
    db.refresh(feature)
    logger.info("Created feature id=%s", feature.id)
    return feature


def update_feature(db: Session, feature_id: str | int, data: FeatureUpdate) -> Feature:
    """Apply only the fields present (and non-null) in the payload."""
    feature = get_feature(db, feature_id)
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None
    }
    for field, value in changes.items():
        setattr(feature, field, value)
    if changes:
        db.commit()
        db.refresh(feature)
        logger.info("Updated feature id=%s fields=%s", feature.id, sorted(changes))
    return feature


def delete_feature(db: Session, store: AttachmentStore, feature_id: str | int) -> None:
    """
    Delete the feature row (attachment rows cascade), then remove each
    attachment blob best-effort; a blob that cannot be removed is logged and
    does not undo the deletion.
    """
    feature = get_feature(db, feature_id)
    public_ids = [a.public_id for a in feature.attachments]
    pk = feature.id
    db.delete(feature)
    db.commit()
    for public_id in public_ids:
        discard_blob(store, public_id)
    logger.info("Deleted feature id=%s (%d attachment(s))", pk, len(public_ids))


def delete_attachment(
    db: Session,
    store: AttachmentStore,
    feature_id: str | int,
    attachment_id: str | int,
) -> Feature:
    feature = get_feature(db, feature_id)
    pk = parse_id(attachment_id, ATTACHMENT_NOT_FOUND)
    attachment = (
        db.query(Attachment)
        .filter(Attachment.id == pk, Attachment.feature_id == feature.id)
        .first()
    )
    if attachment is None:
        raise NotFoundError(ATTACHMENT_NOT_FOUND)
    public_id = attachment.public_id
    feature.attachments.remove(attachment)
    feature.updated_at = func.now()
    db.commit()
    db.refresh(feature)
    discard_blob(store, public_id)
    logger.info("Deleted attachment id=%s from feature id=%s", pk, feature.id)
    return feature
