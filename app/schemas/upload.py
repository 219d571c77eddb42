"""Response schemas for the attachment upload endpoints."""

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.features import AttachmentOut, FeatureOut


class UploadedAttachmentsData(CamelModel):
    """Attachments added by one upload, plus the updated feature."""

    uploaded_files: list[AttachmentOut] = Field(
        default_factory=list,
        description="Attachments created by this upload, in upload order.",
    )
    feature: FeatureOut


class StoredFileOut(CamelModel):
    """Descriptor of a blob stored outside any feature."""

    file_name: str
    file_type: str
    file_size: int = Field(..., ge=0)
    url: str
    public_id: str


class SingleUploadData(CamelModel):
    file: StoredFileOut
