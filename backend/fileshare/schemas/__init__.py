from .user import User, UserCreate
from .share import (
    ShareRecord,
    DownloadInfo,
    SharePreview,
    UploadOptions,
    UploadedFile,
    UserUploadResponse,
    GuestUploadResponse,
    DownloadRequest,
    StatusUpdate,
    ExpiryUpdate,
    PasswordUpdate,
    PasswordVerify,
    ShortLinkRequest,
    ShortLinkResponse,
    EmailLinkRequest,
    SweepResponse,
)
