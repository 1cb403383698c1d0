import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from fileshare.db.base_class import Base


class ShareStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    DELETED = "deleted"


class ShareKind(str, enum.Enum):
    USER = "user"
    GUEST = "guest"

    @property
    def url_prefix(self) -> str:
        # Load-bearing: the prefix decides which table a short link resolves against
        return "/f/" if self is ShareKind.USER else "/g/"


class ShareRecordMixin:
    """Columns shared by user and guest shares."""

    id = Column(Integer, primary_key=True, index=True)
    storage_key = Column(String(512), unique=True, nullable=False)
    public_url = Column(String(1024), nullable=True)

    display_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=False, default="application/octet-stream")
    size_bytes = Column(BigInteger, nullable=False, default=0)

    status = Column(String(16), nullable=False, default=ShareStatus.ACTIVE.value, index=True)
    has_expiry = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    password_hash = Column(String(255), nullable=True)
    is_password_protected = Column(Boolean, default=False, nullable=False)

    short_code = Column(String(64), unique=True, index=True, nullable=False)
    short_url = Column(String(128), unique=True, index=True, nullable=False)

    download_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


class SharedFile(ShareRecordMixin, Base):
    __tablename__ = "shared_file"

    kind = ShareKind.USER

    user_id = Column(Integer, ForeignKey("sys_user.id"), nullable=False, index=True)

    user = relationship("User")

    @property
    def owner(self) -> int:
        return self.user_id


class GuestFile(ShareRecordMixin, Base):
    __tablename__ = "guest_file"

    kind = ShareKind.GUEST

    # Opaque generated label such as "guest_x1Yz9a", not an account reference
    created_by = Column(String(64), nullable=False)

    @property
    def owner(self) -> str:
        return self.created_by
