"""PhotoSync - photo synchronization between folders, a ledger database and a blob store.

Imports JPG files into a relational ledger, mirrors them to a blob store,
downloads missing payloads back and exports changed photos to a folder.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "PhotoRecord",
    "StatusSnapshot",
    "SqlRecordRepository",
    "LocalBlobStore",
    "FileStore",
    "WorkflowOrchestrator",
    "Stage",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("PhotoRecord", "StatusSnapshot"):
        from photosync.sync import record

        return getattr(record, name)
    if name == "SqlRecordRepository":
        from photosync.store.sql import SqlRecordRepository

        return SqlRecordRepository
    if name == "LocalBlobStore":
        from photosync.blobstore.local import LocalBlobStore

        return LocalBlobStore
    if name == "FileStore":
        from photosync.files import FileStore

        return FileStore
    if name in ("WorkflowOrchestrator", "Stage"):
        from photosync.sync import workflow

        return getattr(workflow, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
