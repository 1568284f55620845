"""Storage of uploaded room images on the local file system."""
import logging
import os
import shutil
import time
import uuid
from typing import BinaryIO, Iterable, List

from werkzeug.utils import secure_filename

from booking_service.config import get_settings

logger = logging.getLogger(__name__)


def safe_filename(filename: str) -> str:
    """Client supplied name reduced to something safe to join onto the upload directory."""
    return secure_filename(filename) or "upload"


class BlobStore:
    def __init__(self, directory: str):
        self.directory = directory

    def ensure_directory(self) -> None:
        os.makedirs(self.directory, exist_ok=True)

    def path_for(self, filename: str) -> str:
        return os.path.join(self.directory, os.path.basename(filename))

    def save(self, source: BinaryIO, original_filename: str) -> str:
        """
        Copy an upload into the store and return the stored filename.

        Stored names are ``<uuid hex>-<sanitized original name>`` so two uploads
        never collide, even with identical names in the same millisecond.
        """
        self.ensure_directory()
        filename = f"{uuid.uuid4().hex}-{safe_filename(original_filename)}"
        path = self.path_for(filename)
        try:
            with open(path, "wb") as target:
                shutil.copyfileobj(source, target)
        except OSError:
            # no partial files in the store
            if os.path.exists(path):
                os.remove(path)
            raise
        logger.debug(f"Stored upload {original_filename!r} as {filename}")
        return filename

    def remove(self, filename: str) -> bool:
        """
        Delete a stored file.

        Returns True when the file was removed. A missing file or any other
        OS error is logged and reported as False, never raised.
        """
        path = self.path_for(filename)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Image file {filename} not found, skipping deletion")
            return False
        except OSError:
            logger.exception(f"Error deleting image {filename}")
            return False
        logger.info(f"Image {filename} deleted")
        return True

    def list_files(self) -> List[str]:
        if not os.path.isdir(self.directory):
            return []
        return sorted(
            entry for entry in os.listdir(self.directory)
            if os.path.isfile(os.path.join(self.directory, entry))
        )

    def age_of(self, filename: str) -> float:
        return time.time() - os.path.getmtime(self.path_for(filename))

    def remove_unreferenced(self, referenced: Iterable[str], min_age: float = 0) -> List[str]:
        """
        Remove files not in ``referenced`` that are at least ``min_age`` seconds old.

        Younger files are kept: another process may have stored them and not
        yet committed the row that refers to them.
        """
        keep = set(referenced)
        removed = []
        for filename in self.list_files():
            if filename in keep or self.age_of(filename) < min_age:
                continue
            if self.remove(filename):
                removed.append(filename)
        return removed


def get_blob_store() -> BlobStore:
    """Provide the upload store configured for this process."""
    return BlobStore(get_settings().upload_dir)
