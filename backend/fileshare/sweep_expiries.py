"""Run the bulk expiry sweep once. Meant for cron or a scheduled job."""

import logging
from typing import Optional

from fileshare.core.config import settings
from fileshare.core.exceptions import NotFound
from fileshare.db.base import Base
from fileshare.db.session import SessionLocal, engine
from fileshare.services.lifecycle import ShareLifecycle
from fileshare.storage.object_store import ObjectStoreGateway

logger = logging.getLogger(__name__)


def sweep(store: Optional[ObjectStoreGateway] = None) -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # The sweep only touches records, never object storage
        lifecycle = ShareLifecycle(db, store)
        try:
            touched = lifecycle.sweep_all_expiries()
        except NotFound:
            logger.info("No shares to sweep")
            return 0
        expired = sum(1 for record in touched if record.status == "expired")
        logger.info(f"Swept {len(touched)} shares, {expired} expired")
        return len(touched)
    finally:
        db.close()


def main() -> None:
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.info("Running expiry sweep")
    sweep()
    logger.info("Expiry sweep finished")


if __name__ == "__main__":
    main()
