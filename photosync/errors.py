# PhotoSync Errors
# Exception taxonomy shared by the ledger, blob store and pipelines


class PhotoSyncError(Exception):
    """Base class for all PhotoSync errors."""


class ValidationError(PhotoSyncError):
    """Bad input: missing configuration, unknown stage, invalid path."""


class InvalidFieldError(ValidationError):
    """Raised when a field name cannot be cleared in bulk."""

    def __init__(self, field_name: str):
        super().__init__(f"Field '{field_name}' cannot be cleared (allowed: image_data, blob_path)")
        self.field_name = field_name


class StoreError(PhotoSyncError):
    """Base class for ledger and blob store failures."""


class TransientStoreError(StoreError):
    """Timeout or connection loss. Safe to retry."""


class PermanentStoreError(StoreError):
    """Constraint violation or missing object. Never retried."""


class BlobNotFoundError(PermanentStoreError):
    """The requested blob does not exist."""

    def __init__(self, blob_name: str):
        super().__init__(f"Blob not found: {blob_name}")
        self.blob_name = blob_name


class ConnectivityError(PhotoSyncError):
    """A backend failed its connectivity pre-check before a batch started."""
