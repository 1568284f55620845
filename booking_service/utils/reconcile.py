import logging
from typing import List
from sqlalchemy.orm import Session
from booking_service.models.room import Room
from booking_service.utils.blob_store import BlobStore

logger = logging.getLogger(__name__)


def sweep_orphaned_uploads(db: Session, store: BlobStore, grace_seconds: float = 0) -> List[str]:
    """
    Remove uploaded images that no room refers to.

    Covers files left behind when the process stopped between deleting a
    room row and deleting its image. Files younger than ``grace_seconds``
    are left alone. Returns the removed filenames.
    """
    referenced = {img for (img,) in db.query(Room.img).filter(Room.img.isnot(None)).all()}
    removed = store.remove_unreferenced(referenced, min_age=grace_seconds)
    if removed:
        logger.info(f"Removed {len(removed)} orphaned uploads: {', '.join(removed)}")
    else:
        logger.debug("No orphaned uploads found")
    return removed
