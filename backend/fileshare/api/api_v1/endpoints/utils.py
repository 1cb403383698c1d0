from typing import List, Optional

from fastapi import UploadFile

from fileshare.core.exceptions import NoFilesUploaded
from fileshare.schemas.share import UploadOptions
from fileshare.services.upload import IncomingFile


def build_upload_options(
    is_password: str, password: Optional[str], has_expiry: str, expires_at: Optional[str]
) -> UploadOptions:
    """
    Parse the multipart form flags ("true"/"false" strings) into UploadOptions.
    Raises pydantic.ValidationError on inconsistent input.
    """
    return UploadOptions(
        is_password=is_password == "true",
        password=password or None,
        has_expiry=has_expiry == "true",
        expiry_hours=expires_at or None,
    )


async def read_uploads(files: Optional[List[UploadFile]]) -> List[IncomingFile]:
    """
    Read the multipart files into memory. Raises NoFilesUploaded on an empty batch.
    """
    if not files:
        raise NoFilesUploaded()
    incoming = []
    for upload in files:
        data = await upload.read()
        incoming.append(
            IncomingFile(
                data=data,
                original_name=upload.filename or "uploaded.bin",
                mime_type=upload.content_type or "application/octet-stream",
                size=len(data),
            )
        )
        await upload.close()
    return incoming
