from typing import List, Optional, Type, Union
from sqlalchemy.orm import Session
from sqlalchemy import update

from fileshare.crud.base import CRUDBase
from fileshare.models.share import SharedFile, GuestFile, ShareStatus
from fileshare.schemas.share import ShareRecord

ShareModel = Union[SharedFile, GuestFile]


class CRUDShareRecord(CRUDBase[ShareModel, ShareRecord, ShareRecord]):
    def __init__(self, model: Type[ShareModel]):
        super().__init__(model)

    def get_by_short_url(self, db: Session, *, short_url: str) -> Optional[ShareModel]:
        return db.query(self.model).filter(self.model.short_url == short_url).first()

    def short_url_exists(self, db: Session, *, short_url: str) -> bool:
        return db.query(self.model.id).filter(self.model.short_url == short_url).first() is not None

    def get_not_deleted(self, db: Session) -> List[ShareModel]:
        return (
            db.query(self.model)
            .filter(self.model.status != ShareStatus.DELETED.value)
            .order_by(self.model.id)
            .all()
        )

    def count(self, db: Session) -> int:
        return db.query(self.model).count()

    def search_by_name(self, db: Session, *, query: str) -> List[ShareModel]:
        # ILIKE keeps the match case-insensitive on every backend
        return (
            db.query(self.model)
            .filter(self.model.display_name.ilike(f"%{query}%"))
            .order_by(self.model.id)
            .all()
        )

    def increment_download(self, db: Session, *, share: ShareModel) -> ShareModel:
        stmt = (
            update(self.model)
            .where(self.model.id == share.id)
            .values(download_count=self.model.download_count + 1)
        )
        db.execute(stmt)
        db.commit()
        db.refresh(share)
        return share


class CRUDSharedFile(CRUDShareRecord):
    def get_by_user(self, db: Session, *, user_id: int) -> List[SharedFile]:
        return (
            db.query(SharedFile)
            .filter(SharedFile.user_id == user_id)
            .order_by(SharedFile.id)
            .all()
        )


shared_file = CRUDSharedFile(SharedFile)
guest_file = CRUDShareRecord(GuestFile)
