# PhotoSync Sync Module
# Record model, sync rules, transfer pipelines and workflow orchestration
#
# Members are loaded lazily: the store package imports the record model
# from here, and the pipelines import the store package.

__all__ = [
    # Record
    "PhotoRecord",
    "StatusSnapshot",
    "StorageMode",
    "ExportStatus",
    "BlobSyncStatus",
    # Rules
    "TransferKind",
    "plan_transfers",
    # Results
    "ItemOutcome",
    "ItemResult",
    "ImportResult",
    "ExportResult",
    "BlobSyncResult",
    # Pipelines
    "ImportPipeline",
    "ExportPipeline",
    "UploadPipeline",
    "DownloadPipeline",
    # Workflow
    "Stage",
    "WorkflowOrchestrator",
    "WorkflowResult",
    "parse_stages",
]

_MODULES = {
    "PhotoRecord": "record",
    "StatusSnapshot": "record",
    "StorageMode": "record",
    "ExportStatus": "record",
    "BlobSyncStatus": "record",
    "TransferKind": "rules",
    "plan_transfers": "rules",
    "ItemOutcome": "results",
    "ItemResult": "results",
    "ImportResult": "results",
    "ExportResult": "results",
    "BlobSyncResult": "results",
    "ImportPipeline": "importer",
    "ExportPipeline": "exporter",
    "UploadPipeline": "blobsync",
    "DownloadPipeline": "blobsync",
    "Stage": "workflow",
    "WorkflowOrchestrator": "workflow",
    "WorkflowResult": "workflow",
    "parse_stages": "workflow",
}


def __getattr__(name: str):
    """Lazy import of sync components."""
    if name in _MODULES:
        from importlib import import_module

        return getattr(import_module(f"photosync.sync.{_MODULES[name]}"), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
