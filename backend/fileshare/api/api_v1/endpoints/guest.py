from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from fileshare import schemas
from fileshare.api import deps
from fileshare.api.api_v1.endpoints.utils import build_upload_options, read_uploads
from fileshare.models.share import ShareKind
from fileshare.services.upload import UploadOrchestrator

router = APIRouter()


@router.post("/upload", status_code=201, response_model=schemas.GuestUploadResponse)
async def upload_files_guest(
        *,
        uploader: UploadOrchestrator = Depends(deps.get_uploader),
        files: Optional[List[UploadFile]] = File(None),
        is_password: str = Form("false", alias="isPassword"),
        password: Optional[str] = Form(None),
        has_expiry: str = Form("false", alias="hasExpiry"),
        expires_at: Optional[str] = Form(None, alias="expiresAt"),
) -> Any:
    """
    Upload files without an account. Each file gets a /g/ short link.
    """
    incoming = await read_uploads(files)
    options = build_upload_options(is_password, password, has_expiry, expires_at)
    records = uploader.upload_batch(ShareKind.GUEST, incoming, options)
    files = [schemas.UploadedFile.model_validate(record) for record in records]
    return {"message": "Files uploaded successfully", "files": files}
