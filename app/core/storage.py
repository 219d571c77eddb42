"""Blob storage for feature attachments."""

from __future__ import annotations

import logging
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_PUBLIC_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class StoredFile:
    url: str
    public_id: str


class AttachmentStore(ABC):
    @abstractmethod
    def save(self, filename: str, content_type: str, data: bytes) -> StoredFile:
        ...

    @abstractmethod
    def delete(self, public_id: str) -> bool:
        """Remove a stored blob; False when it does not exist."""


def _safe_name(filename: str) -> str:
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("-", name).strip("-.")
    return name[:100] or "file"


@dataclass(frozen=True)
class LocalAttachmentStore(AttachmentStore):
    """Stores blobs under root; served read-only at url_prefix."""

    root: Path
    url_prefix: str = "/uploads"

    def _path(self, public_id: str) -> Path | None:
        if not _PUBLIC_ID_PATTERN.match(public_id):
            return None
        return self.root / public_id

    def save(self, filename: str, content_type: str, data: bytes) -> StoredFile:
        public_id = f"{uuid.uuid4().hex}-{_safe_name(filename)}"
        path = self.root / public_id
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Could not write {public_id}: {e}") from e
        logger.debug("Stored blob %s (%s, %d bytes)", public_id, content_type, len(data))
        return StoredFile(url=f"{self.url_prefix}/{public_id}", public_id=public_id)

    def delete(self, public_id: str) -> bool:
        path = self._path(public_id)
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Could not delete {public_id}: {e}") from e
        return True


def discard_blob(store: AttachmentStore, public_id: str) -> None:
    """Best-effort blob removal: failures are logged, never raised."""
    try:
        if not store.delete(public_id):
            logger.warning("Attachment blob %s was already gone", public_id)
    except StorageError as e:
        logger.warning("Could not delete attachment blob %s: %s", public_id, e)
