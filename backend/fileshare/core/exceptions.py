"""Share lifecycle errors.

Every error carries the HTTP status code the API answers with, so route
handlers never translate them one by one.
"""


class ShareError(Exception):
    """
    Base class for all share lifecycle errors.
    """
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message=None, status_code=None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFound(ShareError):
    status_code = 404
    default_message = "File not found"


class OwnerNotFound(ShareError):
    status_code = 404
    default_message = "User not found"


class Unavailable(ShareError):
    """
    Raised when a share exists but its status is not active.
    """
    status_code = 403
    default_message = "This file is not available for download"


class Expired(ShareError):
    status_code = 410
    default_message = "This file has expired"


class PasswordRequired(ShareError):
    status_code = 401
    default_message = "Password required"


class IncorrectPassword(ShareError):
    """
    Raised when the supplied password does not match the stored hash.

    The download path answers 403; password verification answers 401.
    """
    status_code = 403
    default_message = "Incorrect password"


class NotProtected(ShareError):
    status_code = 400
    default_message = "File not protected or not found"


class AlreadyDeleted(ShareError):
    status_code = 400
    default_message = "File already deleted"


class InvalidStatus(ShareError):
    status_code = 400
    default_message = "Invalid status"


class NoOp(ShareError):
    """
    Raised when an update would leave the record unchanged.
    """
    status_code = 400
    default_message = "File already has this status"


class NoFilesUploaded(ShareError):
    status_code = 400
    default_message = "No files uploaded"


class StorageError(ShareError):
    """
    Raised when the object store rejects or fails an operation.
    """
    status_code = 500
    default_message = "Object storage request failed"


class NotificationFailed(ShareError):
    status_code = 500
    default_message = "Failed to send notification"
