from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Upload options arrive as multipart form strings ("true"/"false"); they are
# turned into real types here so the lifecycle engine never sees them.
class UploadOptions(CamelModel):
    is_password: bool = False
    password: Optional[str] = None
    has_expiry: bool = False
    expiry_hours: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _normalize(self):
        if not self.is_password:
            self.password = None
        elif not self.password:
            raise ValueError("password is required when isPassword is true")
        if self.has_expiry and self.expiry_hours is None:
            raise ValueError("expiresAt (hours) is required when hasExpiry is true")
        return self


class ShareRecord(CamelModel):
    id: int
    display_name: str
    mime_type: str
    size_bytes: int
    public_url: Optional[str] = None
    status: str
    has_expiry: bool
    expires_at: Optional[datetime] = None
    is_password_protected: bool = False
    short_url: str
    download_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DownloadInfo(ShareRecord):
    download_url: str
    uploaded_by: str


# Public preview of a short link, without a download URL
class SharePreview(CamelModel):
    file_id: int
    display_name: str
    size_bytes: int
    mime_type: str
    preview_url: Optional[str] = None
    is_password_protected: bool = False
    expires_at: Optional[datetime] = None
    status: str


class UploadedFile(ShareRecord):
    pass


class UserUploadResponse(CamelModel):
    message: str
    file_ids: List[int]


class GuestUploadResponse(CamelModel):
    message: str
    files: List[UploadedFile]


class DownloadRequest(CamelModel):
    password: Optional[str] = None


class StatusUpdate(CamelModel):
    status: str


class ExpiryUpdate(CamelModel):
    # Hours from now, named "expiresAt" on the wire
    hours: float = Field(alias="expiresAt", gt=0)


class PasswordUpdate(CamelModel):
    new_password: Optional[str] = None


class PasswordVerify(CamelModel):
    short_code: str
    password: str = ""


class ShortLinkRequest(CamelModel):
    file_id: int


class ShortLinkResponse(CamelModel):
    short_url: str
    share_url: str


class EmailLinkRequest(CamelModel):
    file_id: int
    email: EmailStr


class SweepResponse(CamelModel):
    message: str
    files: List[ShareRecord]
