# PhotoSync Record Model
# Photo records, derived storage/export/blob states and the status snapshot

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form the ledger stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class StorageMode(str, Enum):
    """Where a record's bytes currently live."""

    EMPTY = "empty"
    LOCAL_ONLY = "local_only"
    REMOTE_ONLY = "remote_only"
    HYBRID = "hybrid"


class ExportStatus(str, Enum):
    """Export state relative to the last successful export."""

    NEVER_EXPORTED = "never_exported"
    EXPORT_NEEDED = "export_needed"
    EXPORT_CURRENT = "export_current"


class BlobSyncStatus(str, Enum):
    """Blob store state of a record."""

    NOT_IN_BLOB = "not_in_blob"
    SYNC_NEEDED = "sync_needed"
    SYNCED = "synced"


def format_size(size: int) -> str:
    """Human-readable byte size (B, KB, MB)."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


@dataclass
class PhotoRecord:
    """
    One ledger row.

    ``code`` is the business key. Every other field is optional so a record
    can describe a partial update for :meth:`RecordRepository.upsert`.
    """

    code: str
    image_data: Optional[bytes] = None
    blob_path: Optional[str] = None
    content_hash: Optional[str] = None
    byte_size: Optional[int] = None
    created_at: Optional[datetime] = None
    record_modified_at: Optional[datetime] = None
    content_modified_at: Optional[datetime] = None
    imported_at: Optional[datetime] = None
    exported_at: Optional[datetime] = None
    blob_uploaded_at: Optional[datetime] = None
    blob_sync_pending: bool = False
    source_descriptor: Optional[str] = None
    source_file_name: Optional[str] = None

    @property
    def has_image_data(self) -> bool:
        """Check if a local payload is present."""
        return self.image_data is not None

    @property
    def has_blob_path(self) -> bool:
        """Check if the record was uploaded."""
        return bool(self.blob_path)

    @property
    def storage_mode(self) -> StorageMode:
        """Derived storage mode."""
        from photosync.sync.rules import storage_mode

        return storage_mode(self)

    @property
    def size(self) -> int:
        """Payload size in bytes (0 when absent)."""
        if self.image_data is not None:
            return len(self.image_data)
        return self.byte_size or 0

    @property
    def size_formatted(self) -> str:
        """Human-readable payload size."""
        return format_size(self.size)


@dataclass
class StatusSnapshot:
    """Aggregate ledger statistics for operator reporting."""

    total: int = 0
    with_data: int = 0
    in_blob: int = 0
    never_exported: int = 0
    stale_exports: int = 0
    pending_blob_sync: int = 0
    with_hash: int = 0
    unique_hashes: int = 0
    first_import: Optional[datetime] = None
    last_import: Optional[datetime] = None
    first_export: Optional[datetime] = None
    last_export: Optional[datetime] = None
    first_blob_upload: Optional[datetime] = None
    last_blob_upload: Optional[datetime] = None

    @property
    def duplicates(self) -> int:
        """Hashed records sharing a hash with another record."""
        return self.with_hash - self.unique_hashes if self.with_hash > 0 else 0

    @property
    def needing_export(self) -> int:
        """Records never exported or changed since their export."""
        return self.never_exported + self.stale_exports

    def as_dict(self) -> dict[str, object]:
        """Flat mapping for the detailed status view."""
        return {
            "total": self.total,
            "with_data": self.with_data,
            "in_blob": self.in_blob,
            "never_exported": self.never_exported,
            "stale_exports": self.stale_exports,
            "pending_blob_sync": self.pending_blob_sync,
            "with_hash": self.with_hash,
            "unique_hashes": self.unique_hashes,
            "duplicates": self.duplicates,
            "first_import": self.first_import,
            "last_import": self.last_import,
            "first_export": self.first_export,
            "last_export": self.last_export,
            "first_blob_upload": self.first_blob_upload,
            "last_blob_upload": self.last_blob_upload,
        }
