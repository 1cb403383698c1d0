from typing import Any

from fastapi import APIRouter, Depends

from fileshare import schemas
from fileshare.api import deps
from fileshare.core.exceptions import IncorrectPassword
from fileshare.models.share import ShareKind
from fileshare.services.lifecycle import ShareLifecycle

# Public short-link routes. The /f/ and /g/ prefixes select the user or the
# guest table and must not change.
router = APIRouter()


def _download_info(lifecycle: ShareLifecycle, kind: ShareKind, short_code: str) -> schemas.DownloadInfo:
    resolution = lifecycle.resolve_for_download(kind, short_code=short_code)
    record = schemas.ShareRecord.model_validate(resolution.record)
    return schemas.DownloadInfo(
        **record.model_dump(),
        download_url=resolution.download_url,
        uploaded_by=str(resolution.uploaded_by),
    )


def _preview(lifecycle: ShareLifecycle, kind: ShareKind, short_code: str) -> schemas.SharePreview:
    record = lifecycle.describe_share(kind, short_code)
    return schemas.SharePreview(
        file_id=record.id,
        display_name=record.display_name,
        size_bytes=record.size_bytes,
        mime_type=record.mime_type,
        preview_url=record.public_url,
        is_password_protected=record.is_password_protected,
        expires_at=record.expires_at,
        status=record.status,
    )


def _verify(lifecycle: ShareLifecycle, kind: ShareKind, body: schemas.PasswordVerify) -> dict:
    if not lifecycle.verify_password(kind, body.short_code, body.password):
        raise IncorrectPassword(status_code=401)
    return {"success": True, "message": "Password verified"}


@router.post("/f/verify-password")
def verify_file_password(
        body: schemas.PasswordVerify,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    return _verify(lifecycle, ShareKind.USER, body)


@router.post("/g/verify-password")
def verify_guest_file_password(
        body: schemas.PasswordVerify,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    return _verify(lifecycle, ShareKind.GUEST, body)


@router.get("/f/{short_code}", response_model=schemas.DownloadInfo)
def download_info(
        short_code: str,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    """
    Resolve a user short link to a signed download URL.
    """
    return _download_info(lifecycle, ShareKind.USER, short_code)


@router.get("/g/{short_code}", response_model=schemas.DownloadInfo)
def guest_download_info(
        short_code: str,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    return _download_info(lifecycle, ShareKind.GUEST, short_code)


@router.get("/f/{short_code}/preview", response_model=schemas.SharePreview)
def preview_share(
        short_code: str,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    return _preview(lifecycle, ShareKind.USER, short_code)


@router.get("/g/{short_code}/preview", response_model=schemas.SharePreview)
def preview_guest_share(
        short_code: str,
        lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    return _preview(lifecycle, ShareKind.GUEST, short_code)
