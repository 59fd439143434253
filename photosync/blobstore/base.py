# PhotoSync Blob Store
# Contract for remote photo storage and blob name helpers

import re
import uuid
from abc import ABC, abstractmethod
from urllib.parse import unquote, urlparse

BLOB_EXTENSION = ".jpg"

_INVALID_BLOB_CHARS = re.compile(r"[^\w\-.]")


def sanitize_blob_name(name: str) -> str:
    """
    Make a record code safe to use as a blob name.

    Characters other than word characters, ``-`` and ``.`` become
    underscores; leading and trailing ``.``, ``/`` and ``\\`` are stripped.
    An empty result is replaced by a random UUID.
    """
    sanitized = _INVALID_BLOB_CHARS.sub("_", name or "").strip("./\\")
    return sanitized or str(uuid.uuid4())


def blob_name_for_code(code: str) -> str:
    """Blob name a record is uploaded under."""
    return f"{sanitize_blob_name(code)}{BLOB_EXTENSION}"


def extract_blob_name(path: str, container: str | None = None) -> str:
    """
    Get the blob name from a stored blob path.

    Full URLs (``file://``, ``s3://``, ``https://``) are reduced to their
    path, and a leading container segment is dropped. Plain names are
    returned unchanged.

    Args:
        path: Blob path as stored in the ledger.
        container: Container name to strip when it leads the path.

    Returns:
        The blob name inside the container.
    """
    if "://" not in path:
        return path.lstrip("/")

    parsed = urlparse(path)
    segments = [s for s in unquote(parsed.path).split("/") if s]

    # s3://bucket/key keeps the bucket in the netloc
    if parsed.scheme == "s3":
        return "/".join(segments)

    if container and container in segments:
        index = len(segments) - 1 - segments[::-1].index(container)
        segments = segments[index + 1 :]
    elif len(segments) > 1:
        segments = segments[1:]
    return "/".join(segments)


class BlobStore(ABC):
    """
    Remote object store holding one blob per record.

    Implementations raise :class:`TransientStoreError` for timeouts and lost
    connections, :class:`BlobNotFoundError` for missing blobs and
    :class:`PermanentStoreError` for other failures.
    """

    container: str

    @abstractmethod
    def upload(self, blob_id: str, data: bytes) -> str:
        """
        Upload a payload, overwriting any existing blob of the same name.

        Args:
            blob_id: Record code; sanitized and suffixed with ``.jpg``.
            data: Payload bytes.

        Returns:
            Path (URL) of the stored blob.
        """

    @abstractmethod
    def download(self, path: str) -> bytes:
        """Download a blob by its stored path."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete a blob. Returns False if it did not exist."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a blob exists."""

    @abstractmethod
    def test_connection(self) -> bool:
        """Check that the store is reachable."""
