import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi_mail import FastMail

from fileshare import schemas
from fileshare.api import deps
from fileshare.api.api_v1.endpoints.utils import build_upload_options, read_uploads
from fileshare.core.config import settings
from fileshare.models.share import ShareKind
from fileshare.services.lifecycle import ShareLifecycle
from fileshare.services.notifications import render_share_qr, send_share_email
from fileshare.services.upload import UploadOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", status_code=201, response_model=schemas.UserUploadResponse)
async def upload_files(
        *,
        uploader: UploadOrchestrator = Depends(deps.get_uploader),
        files: Optional[List[UploadFile]] = File(None),
        user_id: int = Form(..., alias="userId"),
        is_password: str = Form("false", alias="isPassword"),
        password: Optional[str] = Form(None),
        has_expiry: str = Form("false", alias="hasExpiry"),
        expires_at: Optional[str] = Form(None, alias="expiresAt"),
) -> Any:
    """
    Upload files for a registered user and create one share per file.
    """
    incoming = await read_uploads(files)
    options = build_upload_options(is_password, password, has_expiry, expires_at)
    records = uploader.upload_batch(ShareKind.USER, incoming, options, owner_id=user_id)
    return {"message": "Files uploaded successfully", "file_ids": [r.id for r in records]}


@router.get("/search", response_model=List[schemas.ShareRecord])
def search_files(
        query: str,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    return lifecycle.search_shares(query)


@router.put("/expiry/sweep", response_model=schemas.SweepResponse)
def sweep_all_expiries(
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    """
    Mark passed shares expired and reset every other live expiry.
    """
    files = lifecycle.sweep_all_expiries()
    return {"message": "All file expiries updated successfully", "files": files}


@router.post("/short-link", response_model=schemas.ShortLinkResponse)
def generate_short_link(
        body: schemas.ShortLinkRequest,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    record = lifecycle.generate_short_link(body.file_id)
    return {
        "short_url": record.short_url,
        "share_url": f"{settings.BASE_URL.rstrip('/')}{record.short_url}",
    }


@router.post("/send-email")
async def send_link_email(
        body: schemas.EmailLinkRequest,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
        mailer: FastMail = Depends(deps.get_mailer),
) -> Any:
    record = lifecycle.get_share(body.file_id)
    await send_share_email(lifecycle, record, body.email, mailer)
    return {"message": "Link sent successfully"}


@router.get("/{file_id}", response_model=schemas.ShareRecord)
def get_file_details(
        file_id: int,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    return lifecycle.get_share(file_id)


@router.post("/{file_id}/download")
def download_file(
        file_id: int,
        body: Optional[schemas.DownloadRequest] = None,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    """
    Download by id. The only download path that enforces the share password.
    """
    resolution = lifecycle.resolve_for_download(
        ShareKind.USER,
        share_id=file_id,
        password=body.password if body else None,
        enforce_password=True,
    )
    return {"downloadUrl": resolution.download_url}


@router.delete("/{file_id}")
def delete_file(
        file_id: int,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    lifecycle.delete_share(file_id)
    return {"message": "File deleted successfully"}


@router.put("/{file_id}/status")
def update_file_status(
        file_id: int,
        body: schemas.StatusUpdate,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    lifecycle.set_status(file_id, body.status)
    return {"message": "File status updated successfully"}


@router.put("/{file_id}/expiry")
def update_file_expiry(
        file_id: int,
        body: schemas.ExpiryUpdate,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    lifecycle.set_expiry(file_id, body.hours)
    return {"message": "File expiry updated successfully"}


@router.put("/{file_id}/password")
def update_file_password(
        file_id: int,
        body: schemas.PasswordUpdate,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    lifecycle.set_password(file_id, body.new_password)
    return {"message": "File password updated successfully"}


@router.get("/{file_id}/download-count")
def get_download_count(
        file_id: int,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    return {"downloadCount": lifecycle.get_download_count(file_id)}


@router.get("/{file_id}/qr")
def generate_qr(
        file_id: int,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    record = lifecycle.get_share(file_id)
    return {"qr": render_share_qr(lifecycle, record)}
