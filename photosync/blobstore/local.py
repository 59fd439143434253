# PhotoSync Local Blob Store
# Directory-backed blob store addressed with file:// URLs

from pathlib import Path

from photosync.blobstore.base import BlobStore, blob_name_for_code, extract_blob_name
from photosync.errors import BlobNotFoundError, PermanentStoreError
from photosync.logger import get_logger
from photosync.utils.paths import atomic_write, ensure_dir, expand_path

logger = get_logger(__name__)


class LocalBlobStore(BlobStore):
    """Blob store keeping each blob as a file in ``<root>/<container>``."""

    def __init__(self, root: str | Path, container: str = "photos"):
        """
        Initialize store.

        Args:
            root: Directory holding containers.
            container: Container (sub-directory) name.
        """
        self.root = expand_path(root)
        self.container = container
        self.directory = self.root / container

    def _path_for(self, path: str) -> Path:
        name = extract_blob_name(path, self.container)
        target = (self.directory / name).resolve()
        if self.directory.resolve() not in target.parents:
            raise PermanentStoreError(f"Blob path escapes container: {path}")
        return target

    def upload(self, blob_id: str, data: bytes) -> str:
        target = self.directory / blob_name_for_code(blob_id)
        try:
            atomic_write(target, data)
        except OSError as e:
            raise PermanentStoreError(f"Failed to write blob {target.name}: {e}") from e
        logger.debug("Stored blob %s (%d bytes)", target.name, len(data))
        return target.resolve().as_uri()

    def download(self, path: str) -> bytes:
        target = self._path_for(path)
        if not target.is_file():
            raise BlobNotFoundError(target.name)
        try:
            return target.read_bytes()
        except OSError as e:
            raise PermanentStoreError(f"Failed to read blob {target.name}: {e}") from e

    def delete(self, path: str) -> bool:
        target = self._path_for(path)
        if not target.is_file():
            return False
        try:
            target.unlink()
        except OSError as e:
            raise PermanentStoreError(f"Failed to delete blob {target.name}: {e}") from e
        return True

    def exists(self, path: str) -> bool:
        return self._path_for(path).is_file()

    def test_connection(self) -> bool:
        try:
            ensure_dir(self.directory)
        except OSError as e:
            logger.error("Blob directory not usable: %s", e)
            return False
        return self.directory.is_dir()
