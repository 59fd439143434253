# PhotoSync Record Repository
# Typed contract over the ledger, keyed by record code

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from typing import Optional

from photosync.errors import InvalidFieldError
from photosync.sync.record import PhotoRecord, StatusSnapshot

# Bulk-clearable columns, with the legacy column names accepted as aliases
CLEARABLE_FIELDS: dict[str, str] = {
    "image_data": "image_data",
    "imagedata": "image_data",
    "blob_path": "blob_path",
    "blobpath": "blob_path",
    "azurestoragepath": "blob_path",
}


def resolve_clear_field(field_name: str) -> str:
    """
    Map a user-supplied field name to a clearable column.

    Raises:
        InvalidFieldError: If the field cannot be cleared.
    """
    key = (field_name or "").strip().lower()
    if key not in CLEARABLE_FIELDS:
        raise InvalidFieldError(field_name)
    return CLEARABLE_FIELDS[key]


class RecordRepository(ABC):
    """
    Ledger operations used by the sync engine.

    Implementations raise :class:`TransientStoreError` for timeouts and lost
    connections and :class:`PermanentStoreError` for everything else that
    went wrong in the store.
    """

    @abstractmethod
    def test_connection(self) -> bool:
        """Check that the ledger is reachable."""

    @abstractmethod
    def upsert(self, record: PhotoRecord) -> bool:
        """Insert the record, or merge its non-null fields into the existing row."""

    @abstractmethod
    def find_by_code(self, code: str) -> Optional[PhotoRecord]:
        """Get a record by code."""

    @abstractmethod
    def find_all(self) -> Sequence[PhotoRecord]:
        """Get every record."""

    @abstractmethod
    def find_missing_blob_path(self) -> Sequence[PhotoRecord]:
        """Records with a local payload that were never uploaded."""

    @abstractmethod
    def find_missing_image_data(self) -> Sequence[PhotoRecord]:
        """Uploaded records without a local payload."""

    @abstractmethod
    def find_needing_export(self) -> Sequence[PhotoRecord]:
        """Records never exported or modified since their last export."""

    @abstractmethod
    def find_needing_blob_sync(self) -> Sequence[PhotoRecord]:
        """Records whose local payload changed after upload."""

    @abstractmethod
    def find_duplicate_by_hash(self, content_hash: str, exclude_code: Optional[str] = None) -> Optional[PhotoRecord]:
        """Exact, case-sensitive hash lookup, optionally ignoring one code."""

    @abstractmethod
    def update_blob_path(self, code: str, blob_path: str) -> bool:
        """Record a successful upload and clear the dirty flag."""

    @abstractmethod
    def update_image_data(self, code: str, data: bytes) -> bool:
        """Store a new local payload; dirties the blob copy if one exists."""

    @abstractmethod
    def update_export_tracking(self, code: str, exported_at: datetime) -> bool:
        """Record a successful export."""

    @abstractmethod
    def update_import_tracking(
        self,
        code: str,
        imported_at: datetime,
        source_descriptor: str,
        source_file_name: str,
        content_hash: Optional[str],
        size: int,
    ) -> bool:
        """Record a successful import."""

    @abstractmethod
    def clear_field(self, field_name: str) -> int:
        """Set one column to NULL on every row. Returns the affected row count."""

    @abstractmethod
    def summary_stats(self) -> StatusSnapshot:
        """Aggregate counts and timestamps for reporting."""

    @abstractmethod
    def count(self) -> int:
        """Number of records."""
