"""Attachment uploads: validate a batch of files, store the blobs, and record descriptors."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationFailedError
from app.core.storage import AttachmentStore, StoredFile, discard_blob
from app.models.feature import (
    FILE_NAME_MAX_LENGTH,
    FILE_TYPE_MAX_LENGTH,
    Attachment,
    Feature,
)
from app.services.features import get_feature

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
# Longer suffixes are treated as part of the name when clipping.
_MAX_KEPT_EXTENSION = 16


def clip_file_name(name: str, limit: int = FILE_NAME_MAX_LENGTH) -> str:
    """Shorten name to limit characters, keeping a short extension intact."""
    if len(name) <= limit:
        return name
    stem, dot, ext = name.rpartition(".")
    if dot and stem and len(ext) < _MAX_KEPT_EXTENSION:
        return f"{stem[: limit - len(ext) - 1]}.{ext}"
    return name[:limit]


@dataclass(frozen=True)
class IncomingFile:
    """One uploaded file read from a multipart request; name and type fit their columns."""

    filename: str
    content_type: str
    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "filename", clip_file_name(self.filename or "file"))
        content_type = self.content_type or DEFAULT_CONTENT_TYPE
        object.__setattr__(self, "content_type", content_type[:FILE_TYPE_MAX_LENGTH])

    @property
    def size(self) -> int:
        return len(self.data)


def _mb(n_bytes: int) -> str:
    return f"{n_bytes // (1024 * 1024)}MB" if n_bytes >= 1024 * 1024 else f"{n_bytes} bytes"


def check_file_count(count: int, max_files: int) -> None:
    if count == 0:
        raise ValidationFailedError(
            "No files uploaded",
            errors=[{"field": "attachments", "message": "At least one file is required"}],
        )
    if count > max_files:
        raise ValidationFailedError(
            f"Too many files. Maximum {max_files} files per upload.",
            errors=[
                {"field": "attachments", "message": f"At most {max_files} files are allowed"}
            ],
        )


def check_file_sizes(files: Sequence[IncomingFile], max_bytes: int) -> None:
    """Reject the whole batch if any file is over the limit, listing every offender."""
    too_large = [f for f in files if f.size > max_bytes]
    if too_large:
        raise ValidationFailedError(
            f"File size too large. Maximum size is {_mb(max_bytes)} per file.",
            errors=[
                {"field": "attachments", "message": f"{f.filename} exceeds {_mb(max_bytes)}"}
                for f in too_large
            ],
        )


def add_attachments(
    db: Session,
    store: AttachmentStore,
    feature_id: str | int,
    files: Sequence[IncomingFile],
    max_files: int,
    max_bytes: int,
) -> tuple[list[Attachment], Feature]:
    """
    Attach a batch of files to a feature, all or nothing.

    Every check runs before the first blob is written. If storing a blob or
    committing the rows fails, blobs already written for this batch are
    removed again and the error propagates.
    """
    check_file_count(len(files), max_files)
    check_file_sizes(files, max_bytes)
    feature = get_feature(db, feature_id)

    stored: list[StoredFile] = []
    created: list[Attachment] = []
    try:
        for f in files:
            blob = store.save(f.filename, f.content_type, f.data)
            stored.append(blob)
            attachment = Attachment(
                file_name=f.filename,
                file_type=f.content_type,
                file_size=f.size,
                url=blob.url,
                public_id=blob.public_id,
            )
            feature.attachments.append(attachment)
            created.append(attachment)
        feature.updated_at = func.now()
        db.commit()
    except Exception:
        db.rollback()
        for blob in stored:
            discard_blob(store, blob.public_id)
        logger.warning(
            "Attachment upload for feature id=%s rolled back (%d blob(s) removed)",
            feature_id,
            len(stored),
        )
        raise

    db.refresh(feature)
    for attachment in created:
        db.refresh(attachment)
    logger.info("Stored %d attachment(s) for feature id=%s", len(created), feature.id)
    return created, feature


def store_single(
    store: AttachmentStore, file: IncomingFile | None, max_bytes: int
) -> tuple[IncomingFile, StoredFile]:
    """Store one general-purpose file that is not tied to a feature."""
    if file is None:
        raise ValidationFailedError(
            "No file uploaded",
            errors=[{"field": "file", "message": "A file is required"}],
        )
    check_file_sizes([file], max_bytes)
    blob = store.save(file.filename, file.content_type, file.data)
    logger.info("Stored single file %s (%d bytes)", blob.public_id, file.size)
    return file, blob


def remove_stored_file(db: Session, store: AttachmentStore, public_id: str) -> None:
    """
    Delete a stored blob by public id.

    Attachment rows that point at the blob are removed in the same call, so
    no feature is left listing a file that no longer exists.
    """
    referencing = db.query(Attachment).filter(Attachment.public_id == public_id).all()
    for attachment in referencing:
        attachment.feature.updated_at = func.now()
        db.delete(attachment)
    if referencing:
        db.commit()
        logger.info(
            "Removed %d attachment row(s) referencing %s", len(referencing), public_id
        )
    if not store.delete(public_id) and not referencing:
        raise NotFoundError("File not found or already deleted")
    logger.info("Deleted stored file %s", public_id)
