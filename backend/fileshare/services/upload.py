import logging
import os
import re
import secrets
from dataclasses import dataclass
from typing import List, Optional, Sequence

from fileshare import crud
from fileshare.core.config import settings
from fileshare.core.exceptions import NoFilesUploaded, OwnerNotFound
from fileshare.models.share import ShareKind
from fileshare.schemas.share import UploadOptions
from fileshare.services.lifecycle import ShareLifecycle

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    data: bytes
    original_name: str
    mime_type: str
    size: int


def sanitize_filename(filename: str) -> str:
    """Replace every whitespace run with an underscore."""
    return re.sub(r"\s+", "_", filename)


def build_storage_name(filename: str, suffix: str) -> str:
    """
    Insert a unique suffix before the extension.
    Example: report v1.pdf -> report_v1_<suffix>.pdf
    """
    name, ext = os.path.splitext(sanitize_filename(filename))
    return f"{name}_{suffix}{ext}"


def build_storage_key(storage_name: str) -> str:
    return f"{settings.STORAGE_KEY_PREFIX}/{storage_name}"


def mime_bucket(mime_type: str) -> Optional[str]:
    if mime_type.startswith("image/"):
        return "image_count"
    if mime_type.startswith("video/"):
        return "video_count"
    if mime_type.startswith("application/"):
        return "document_count"
    return None


class UploadOrchestrator:
    """
    Stores each blob, then creates its share.

    A batch is not atomic: when one file fails, the files before it stay
    stored and shared, and the error propagates.
    """

    def __init__(self, lifecycle: ShareLifecycle):
        self.lifecycle = lifecycle
        self.store = lifecycle.store
        self.db = lifecycle.db

    def _new_suffix(self) -> str:
        return secrets.token_urlsafe(settings.SHORT_CODE_BYTES)

    def upload_batch(
        self,
        kind: ShareKind,
        files: Sequence[IncomingFile],
        options: UploadOptions,
        owner_id: Optional[int] = None,
    ) -> List:
        if not files:
            raise NoFilesUploaded()

        if kind is ShareKind.USER and crud.user.get(self.db, owner_id) is None:
            raise OwnerNotFound()

        counters = {"total_uploads": 0, "image_count": 0, "video_count": 0, "document_count": 0}
        records = []
        for incoming in files:
            storage_name = build_storage_name(incoming.original_name, self._new_suffix())
            key = build_storage_key(storage_name)
            self.store.put(key, incoming.data, incoming.mime_type)

            # Every guest share gets its own generated label
            owner = owner_id if kind is ShareKind.USER else f"guest_{self._new_suffix()}"
            record = self.lifecycle.create_share(
                kind,
                owner=owner,
                storage_key=key,
                public_url=self.store.public_url(key),
                display_name=storage_name,
                mime_type=incoming.mime_type,
                size_bytes=incoming.size,
                options=options,
            )
            records.append(record)

            counters["total_uploads"] += 1
            bucket = mime_bucket(incoming.mime_type)
            if bucket:
                counters[bucket] += 1

        if kind is ShareKind.USER:
            crud.user.increment_counters(self.db, user_id=owner_id, deltas=counters)

        logger.info(f"Uploaded {len(records)} {kind.value} files")
        return records
