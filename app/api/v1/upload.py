"""Upload endpoints: feature attachments (multipart), standalone files, stored-file removal."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, UploadFile
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_store, require_admin
from app.core.config import Settings
from app.core.database import get_db
from app.core.storage import AttachmentStore
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.features import AttachmentOut, FeatureOut
from app.schemas.upload import SingleUploadData, StoredFileOut, UploadedAttachmentsData
from app.services import attachments as attachments_service
from app.services.attachments import IncomingFile

router = APIRouter()

ATTACHMENTS_FIELD = "attachments"
SINGLE_FILE_FIELD = "file"


def _is_upload_file(obj: object) -> bool:
    """True if obj is an uploaded file (UploadFile or file-like with filename and read)."""
    if isinstance(obj, UploadFile):
        return True
    return (
        hasattr(obj, "read")
        and callable(getattr(obj, "read", None))
        and hasattr(obj, "filename")
    )


async def _read_incoming(upload, max_bytes: int) -> IncomingFile:
    # Read one byte past the limit: enough to detect oversize without buffering it all.
    data = await upload.read(max_bytes + 1)
    return IncomingFile(
        filename=getattr(upload, "filename", None) or "",
        content_type=getattr(upload, "content_type", None) or "",
        data=data,
    )


@router.post(
    "/feature/{feature_id}/attachments",
    response_model=ApiResponse[UploadedAttachmentsData],
)
async def upload_feature_attachments(
    feature_id: str,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[AttachmentStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[UploadedAttachmentsData]:
    """
    Attach up to MAX_UPLOAD_FILES files to a feature.

    Send `multipart/form-data` with one or more parts named `attachments`.
    The batch is all or nothing: a count or size violation, or a storage
    failure, leaves the feature and the blob store unchanged.
    """
    form = await request.form()
    uploads = [v for v in form.getlist(ATTACHMENTS_FIELD) if _is_upload_file(v)]
    attachments_service.check_file_count(len(uploads), settings.MAX_UPLOAD_FILES)
    files = [await _read_incoming(u, settings.MAX_UPLOAD_FILE_BYTES) for u in uploads]

    created, feature = attachments_service.add_attachments(
        db,
        store,
        feature_id,
        files,
        max_files=settings.MAX_UPLOAD_FILES,
        max_bytes=settings.MAX_UPLOAD_FILE_BYTES,
    )
    return ApiResponse(
        message=f"{len(created)} file(s) uploaded successfully",
        data=UploadedAttachmentsData(
            uploaded_files=[AttachmentOut.model_validate(a) for a in created],
            feature=FeatureOut.model_validate(feature),
        ),
    )


@router.post("/single", response_model=ApiResponse[SingleUploadData])
async def upload_single_file(
    request: Request,
    store: Annotated[AttachmentStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[SingleUploadData]:
    """Store one file (multipart field `file`) without linking it to a feature."""
    form = await request.form()
    upload = form.get(SINGLE_FILE_FIELD)
    incoming = None
    if upload is not None and _is_upload_file(upload):
        incoming = await _read_incoming(upload, settings.MAX_UPLOAD_FILE_BYTES)

    file, blob = attachments_service.store_single(
        store, incoming, settings.MAX_UPLOAD_FILE_BYTES
    )
    return ApiResponse(
        message="File uploaded successfully",
        data=SingleUploadData(
            file=StoredFileOut(
                file_name=file.filename,
                file_type=file.content_type,
                file_size=file.size,
                url=blob.url,
                public_id=blob.public_id,
            )
        ),
    )


@router.delete("/file/{public_id}", response_model=ApiResponse[None])
def delete_stored_file(
    public_id: str,
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[AttachmentStore, Depends(get_store)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[None]:
    """Delete a stored file; any feature attachment pointing at it is removed too."""
    attachments_service.remove_stored_file(db, store, public_id)
    return ApiResponse(message="File deleted successfully")
