"""
Share link lifecycle.

A share is created active, can be toggled active/inactive by its owner, turns
expired lazily (the first access after `expires_at` flips the status) and is
hard-deleted together with its blob. There is no background expiry process;
`sweep_all_expiries` is the only bulk maintenance hook and is invoked from
outside (see `fileshare.sweep_expiries`).

All state lives in the database, so every operation is a read-modify-write
against the session it was given.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, List, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fileshare import crud
from fileshare.core import security
from fileshare.core.config import settings
from fileshare.core.exceptions import (
    AlreadyDeleted,
    Expired,
    IncorrectPassword,
    InvalidStatus,
    NoOp,
    NotFound,
    NotProtected,
    OwnerNotFound,
    PasswordRequired,
    Unavailable,
)
from fileshare.models.share import GuestFile, SharedFile, ShareKind, ShareStatus
from fileshare.schemas.share import UploadOptions
from fileshare.storage.object_store import ObjectStoreGateway

logger = logging.getLogger(__name__)

SETTABLE_STATUSES = (ShareStatus.ACTIVE.value, ShareStatus.INACTIVE.value)


class DownloadResolution(NamedTuple):
    record: object
    download_url: str
    uploaded_by: str


class ShareLifecycle:
    def __init__(
        self,
        db: Session,
        store: ObjectStoreGateway,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.store = store
        self.clock = clock

    @property
    def default_expiry(self) -> timedelta:
        return timedelta(days=settings.DEFAULT_EXPIRY_DAYS)

    @property
    def signed_url_ttl(self) -> timedelta:
        return timedelta(hours=settings.SIGNED_URL_TTL_HOURS)

    def _crud(self, kind: ShareKind):
        return crud.shared_file if kind is ShareKind.USER else crud.guest_file

    def _new_short_link(self, kind: ShareKind):
        table = self._crud(kind)
        while True:
            code = secrets.token_urlsafe(settings.SHORT_CODE_BYTES)
            short_url = f"{kind.url_prefix}{code}"
            if not table.short_url_exists(self.db, short_url=short_url):
                return code, short_url

    # --- creation -------------------------------------------------------

    def create_share(
        self,
        kind: ShareKind,
        *,
        owner,
        storage_key: str,
        display_name: str,
        mime_type: str,
        size_bytes: int,
        options: UploadOptions,
        public_url: Optional[str] = None,
    ):
        """
        Persist a new active share for a blob the caller already stored.

        Without an explicit expiry the share still expires after the default
        period, so every record carries a concrete `expires_at`.

        Raises:
            OwnerNotFound: user share whose owner id does not exist
        """
        if kind is ShareKind.USER and crud.user.get(self.db, owner) is None:
            raise OwnerNotFound()

        now = self.clock()
        if options.has_expiry:
            expires_at = now + timedelta(hours=options.expiry_hours)
        else:
            expires_at = now + self.default_expiry

        code, short_url = self._new_short_link(kind)
        fields = dict(
            storage_key=storage_key,
            public_url=public_url,
            display_name=display_name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            status=ShareStatus.ACTIVE.value,
            has_expiry=options.has_expiry,
            expires_at=expires_at,
            short_code=code,
            short_url=short_url,
            download_count=0,
        )
        if options.password:
            fields["password_hash"] = security.get_password_hash(options.password)
            fields["is_password_protected"] = True

        if kind is ShareKind.USER:
            record = SharedFile(user_id=owner, **fields)
        else:
            record = GuestFile(created_by=owner, **fields)

        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Created {kind.value} share {record.id} ({record.short_url}) for key {storage_key}")
        return record

    # --- lookup ---------------------------------------------------------

    def get_share(self, share_id: int, kind: ShareKind = ShareKind.USER):
        record = self._crud(kind).get(self.db, share_id)
        if record is None:
            raise NotFound()
        return record

    def get_by_short_code(self, kind: ShareKind, short_code: str):
        record = self._crud(kind).get_by_short_url(self.db, short_url=f"{kind.url_prefix}{short_code}")
        if record is None:
            raise NotFound()
        return record

    def _expire_if_due(self, record) -> None:
        """Materialize a passed expiry: flip to expired, persist, raise Expired."""
        if record.is_expired(self.clock()):
            record.status = ShareStatus.EXPIRED.value
            self.db.add(record)
            self.db.commit()
            logger.info(f"Share {record.id} expired at {record.expires_at}")
            raise Expired()

    def _ensure_downloadable(self, record) -> None:
        if record.status == ShareStatus.EXPIRED:
            raise Expired()
        if record.status != ShareStatus.ACTIVE:
            raise Unavailable()
        self._expire_if_due(record)

    def describe_share(self, kind: ShareKind, short_code: str):
        """
        Public preview of a short link. Counts no download and issues no URL.
        """
        record = self.get_by_short_code(kind, short_code)
        if record.status == ShareStatus.EXPIRED:
            raise Expired()
        self._expire_if_due(record)
        return record

    # --- download -------------------------------------------------------

    def issue_download_url(self, record) -> str:
        return self.store.signed_url(record.storage_key, record.display_name, self.signed_url_ttl)

    def resolve_for_download(
        self,
        kind: ShareKind = ShareKind.USER,
        *,
        short_code: Optional[str] = None,
        share_id: Optional[int] = None,
        password: Optional[str] = None,
        enforce_password: bool = False,
    ) -> DownloadResolution:
        """
        Validate a share and hand out a signed download URL.

        Short-code lookups do not check the share password; only callers that
        pass `enforce_password` (download by id) are gated by it.

        Raises:
            NotFound, Unavailable, Expired, PasswordRequired, IncorrectPassword
        """
        if short_code is not None:
            record = self.get_by_short_code(kind, short_code)
        elif share_id is not None:
            record = self.get_share(share_id, kind)
        else:
            raise ValueError("short_code or share_id is required")

        self._ensure_downloadable(record)

        if enforce_password and record.is_password_protected:
            if not password:
                raise PasswordRequired()
            if not security.verify_password(password, record.password_hash):
                raise IncorrectPassword()

        download_url = self.issue_download_url(record)
        record = self._crud(kind).increment_download(self.db, share=record)

        uploaded_by = record.owner if kind is ShareKind.GUEST else self._record_user_download(record)
        return DownloadResolution(record=record, download_url=download_url, uploaded_by=uploaded_by)

    def _record_user_download(self, record) -> str:
        # Best effort: a missing owner or a failed counter write never fails the download
        try:
            owner = crud.user.get(self.db, record.user_id)
            if owner is None:
                return "Unknown"
            crud.user.increment_counters(self.db, user_id=owner.id, deltas={"total_downloads": 1})
            return owner.fullname
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Could not update download counter for user {record.user_id}: {e}")
            return "Unknown"

    def get_download_count(self, share_id: int) -> int:
        return self.get_share(share_id).download_count or 0

    # --- owner mutations ------------------------------------------------

    def set_status(self, share_id: int, status: str, kind: ShareKind = ShareKind.USER):
        if status not in SETTABLE_STATUSES:
            raise InvalidStatus()
        record = self.get_share(share_id, kind)
        if record.status == status:
            raise NoOp()
        record.status = status
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Share {share_id} status set to {status}")
        return record

    def set_expiry(self, share_id: int, hours: float, kind: ShareKind = ShareKind.USER):
        record = self.get_share(share_id, kind)
        record.expires_at = self.clock() + timedelta(hours=hours)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def sweep_all_expiries(self) -> List[SharedFile]:
        """
        Bulk maintenance over every non-deleted user share.

        Shares past their expiry are marked expired. All the others get a
        fresh default expiry, i.e. live expiries are reset, not just checked.

        Raises:
            NotFound: there are no user shares at all
        """
        if crud.shared_file.count(self.db) == 0:
            raise NotFound("No files found")

        now = self.clock()
        touched = []
        for record in crud.shared_file.get_not_deleted(self.db):
            if record.is_expired(now):
                record.status = ShareStatus.EXPIRED.value
            else:
                record.expires_at = now + self.default_expiry
            record.has_expiry = True
            self.db.add(record)
            touched.append(record)
        self.db.commit()
        for record in touched:
            self.db.refresh(record)
        logger.info(f"Expiry sweep touched {len(touched)} shares")
        return touched

    def set_password(self, share_id: int, new_password: Optional[str], kind: ShareKind = ShareKind.USER):
        record = self.get_share(share_id, kind)
        if not new_password:
            raise PasswordRequired("New password is required", status_code=400)
        record.password_hash = security.get_password_hash(new_password)
        record.is_password_protected = True
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def verify_password(self, kind: ShareKind, short_code: str, password: str) -> bool:
        record = self._crud(kind).get_by_short_url(self.db, short_url=f"{kind.url_prefix}{short_code}")
        if record is None or not record.is_password_protected:
            raise NotProtected()
        return security.verify_password(password, record.password_hash)

    def delete_share(self, share_id: int, kind: ShareKind = ShareKind.USER) -> None:
        """
        Remove the blob, then the record. A storage failure leaves the record in place.
        """
        record = self.get_share(share_id, kind)
        if record.status == ShareStatus.DELETED:
            raise AlreadyDeleted()
        self.store.delete(record.storage_key)
        self._crud(kind).remove(self.db, id=record.id)
        logger.info(f"Deleted share {share_id} and object {record.storage_key}")

    def generate_short_link(self, share_id: int, kind: ShareKind = ShareKind.USER):
        """Rotate the public link. The previous code stops resolving."""
        record = self.get_share(share_id, kind)
        code, short_url = self._new_short_link(kind)
        record.short_code = code
        record.short_url = short_url
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    # --- listings -------------------------------------------------------

    def search_shares(self, query: str) -> List[SharedFile]:
        records = crud.shared_file.search_by_name(self.db, query=query)
        if not records:
            raise NotFound("No files found")
        return records

    def list_user_shares(self, user_id: int) -> List[SharedFile]:
        records = crud.shared_file.get_by_user(self.db, user_id=user_id)
        if not records:
            raise NotFound("No files found")
        return records
