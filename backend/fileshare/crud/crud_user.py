from typing import Dict, Optional
from sqlalchemy.orm import Session
from sqlalchemy import update

from fileshare.crud.base import CRUDBase
from fileshare.models.user import User
from fileshare.schemas.user import UserCreate


class CRUDUser(CRUDBase[User, UserCreate, UserCreate]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def increment_counters(self, db: Session, *, user_id: int, deltas: Dict[str, int]) -> None:
        """
        Add `deltas` to the named counter columns in a single UPDATE.
        """
        values = {
            name: getattr(User, name) + delta
            for name, delta in deltas.items()
            if delta
        }
        if not values:
            return
        stmt = update(User).where(User.id == user_id).values(**values)
        db.execute(stmt)
        db.commit()

user = CRUDUser(User)
