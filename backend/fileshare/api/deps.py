from functools import lru_cache
from typing import Generator

from fastapi import Depends
from fastapi_mail import FastMail
from sqlalchemy.orm import Session

from fileshare.db.session import SessionLocal
from fileshare.services.lifecycle import ShareLifecycle
from fileshare.services.notifications import get_mail_config
from fileshare.services.upload import UploadOrchestrator
from fileshare.storage.object_store import ObjectStoreGateway, build_object_store


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache()
def get_object_store() -> ObjectStoreGateway:
    return build_object_store()


def get_mailer() -> FastMail:
    return FastMail(get_mail_config())


def get_lifecycle(
    db: Session = Depends(get_db),
    store: ObjectStoreGateway = Depends(get_object_store),
) -> ShareLifecycle:
    return ShareLifecycle(db, store)


def get_uploader(lifecycle: ShareLifecycle = Depends(get_lifecycle)) -> UploadOrchestrator:
    return UploadOrchestrator(lifecycle)
