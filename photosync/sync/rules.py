# PhotoSync Sync Rules
# Pure decision logic: which transfers a record needs and what a transfer changes
#
# The ledger and the import pipeline apply merge_upsert, is_duplicate and the
# after_* transitions. The status and planning helpers (storage_mode,
# export_status, blob_sync_status, needs_*, plan_transfers) describe the same
# states per record; the candidate queries in store/sql.py are their SQL form.

from dataclasses import fields, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from photosync.sync.record import BlobSyncStatus, ExportStatus, PhotoRecord, StorageMode
from photosync.utils.hashing import content_hash


class TransferKind(str, Enum):
    """Directions a record's bytes can move."""

    IMPORT = "import"  # file store -> ledger
    EXPORT = "export"  # ledger -> file store
    UPLOAD = "upload"  # ledger -> blob store
    DOWNLOAD = "download"  # blob store -> ledger


# Fields that upsert never merges from the incoming record
_UPSERT_MANAGED = {"code", "created_at", "record_modified_at", "blob_sync_pending"}


def storage_mode(record: PhotoRecord) -> StorageMode:
    """Classify where the record's bytes live."""
    local = record.has_image_data
    remote = record.has_blob_path

    if local and remote:
        return StorageMode.HYBRID
    if local:
        return StorageMode.LOCAL_ONLY
    if remote:
        return StorageMode.REMOTE_ONLY
    return StorageMode.EMPTY


def needs_export(record: PhotoRecord) -> bool:
    """
    Check if the record changed since its last export.

    True when it was never exported, or when the row or the payload was
    modified after the export timestamp.
    """
    if record.exported_at is None:
        return True
    if record.record_modified_at is not None and record.record_modified_at > record.exported_at:
        return True
    if record.content_modified_at is not None and record.content_modified_at > record.exported_at:
        return True
    return False


def export_status(record: PhotoRecord) -> ExportStatus:
    """Derived export status."""
    if record.exported_at is None:
        return ExportStatus.NEVER_EXPORTED
    if needs_export(record):
        return ExportStatus.EXPORT_NEEDED
    return ExportStatus.EXPORT_CURRENT


def blob_sync_status(record: PhotoRecord) -> BlobSyncStatus:
    """Derived blob store status."""
    if record.blob_sync_pending:
        return BlobSyncStatus.SYNC_NEEDED
    if not record.has_blob_path:
        return BlobSyncStatus.NOT_IN_BLOB
    return BlobSyncStatus.SYNCED


def needs_upload(record: PhotoRecord) -> bool:
    """Dirty flag set and a local payload available to re-upload."""
    return record.blob_sync_pending and record.has_image_data


def needs_initial_upload(record: PhotoRecord) -> bool:
    """Local payload present but never uploaded."""
    return record.has_image_data and not record.has_blob_path


def needs_download(record: PhotoRecord) -> bool:
    """Uploaded but no local payload."""
    return record.has_blob_path and not record.has_image_data


def needs_import(record: PhotoRecord) -> bool:
    """No local payload; an import would fill it."""
    return storage_mode(record) in (StorageMode.EMPTY, StorageMode.REMOTE_ONLY)


def plan_transfers(record: PhotoRecord) -> set[TransferKind]:
    """
    Decide which transfers apply to a record.

    Args:
        record: The record to inspect.

    Returns:
        Set of transfer kinds. Import is only planned for empty records since
        remote-only records are filled by a download instead.
    """
    planned: set[TransferKind] = set()
    mode = storage_mode(record)

    if mode == StorageMode.EMPTY:
        planned.add(TransferKind.IMPORT)
    if needs_initial_upload(record) or needs_upload(record):
        planned.add(TransferKind.UPLOAD)
    if needs_download(record):
        planned.add(TransferKind.DOWNLOAD)
    if record.has_image_data and needs_export(record):
        planned.add(TransferKind.EXPORT)

    return planned


def is_duplicate(code: str, existing: Optional[PhotoRecord]) -> bool:
    """Check if a hash lookup result is another record than ``code``."""
    return existing is not None and existing.code != code


def merge_upsert(existing: Optional[PhotoRecord], incoming: PhotoRecord, now: datetime) -> PhotoRecord:
    """
    Compute the row an upsert produces.

    Args:
        existing: Current row for the code, or None for an insert.
        incoming: Record carrying the values to write.
        now: Current time; also the creation time of an insert without one.

    Returns:
        The resulting record. Populated fields are never replaced by None.
    """
    if existing is None:
        record = replace(incoming, created_at=incoming.created_at or now)
        if record.image_data is not None:
            record.imported_at = record.imported_at or record.created_at
            record.content_modified_at = record.content_modified_at or record.created_at
            if record.byte_size is None:
                record.byte_size = len(record.image_data)
        return record

    merged = replace(existing)
    for f in fields(PhotoRecord):
        if f.name in _UPSERT_MANAGED:
            continue
        value = getattr(incoming, f.name)
        if value is not None:
            setattr(merged, f.name, value)

    merged.record_modified_at = now
    merged.blob_sync_pending = existing.blob_sync_pending or incoming.blob_sync_pending
    if incoming.image_data is not None:
        merged.content_modified_at = incoming.content_modified_at or now
        if existing.has_blob_path:
            merged.blob_sync_pending = True
    return merged


def after_import(
    record: PhotoRecord,
    now: datetime,
    *,
    source_descriptor: str,
    source_file_name: str,
    file_hash: Optional[str],
    size: int,
) -> PhotoRecord:
    """Tracking metadata after a successful import."""
    return replace(
        record,
        imported_at=now,
        content_modified_at=now,
        source_descriptor=source_descriptor,
        source_file_name=source_file_name,
        content_hash=file_hash if file_hash else record.content_hash,
        byte_size=size,
    )


def after_export(record: PhotoRecord, exported_at: datetime) -> PhotoRecord:
    """Tracking metadata after a successful export."""
    return replace(record, exported_at=exported_at)


def after_upload(record: PhotoRecord, blob_path: str, now: datetime) -> PhotoRecord:
    """Tracking metadata after a successful upload. Clears the dirty flag."""
    return replace(
        record,
        blob_path=blob_path,
        blob_uploaded_at=now,
        blob_sync_pending=False,
        record_modified_at=now,
    )


def after_content_update(record: PhotoRecord, data: bytes, now: datetime) -> PhotoRecord:
    """
    Tracking metadata after the local payload changed.

    The dirty flag is set only if the record was already uploaded.
    """
    return replace(
        record,
        image_data=data,
        content_hash=content_hash(data) or record.content_hash,
        byte_size=len(data),
        content_modified_at=now,
        record_modified_at=now,
        blob_sync_pending=record.has_blob_path,
    )
