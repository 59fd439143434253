# PhotoSync Blob Store Module
# Blob store contract, backends and factory

from photosync.blobstore.base import (
    BLOB_EXTENSION,
    BlobStore,
    blob_name_for_code,
    extract_blob_name,
    sanitize_blob_name,
)
from photosync.blobstore.local import LocalBlobStore
from photosync.config.schema import BlobBackend, BlobStoreConfig


def create_blob_store(config: BlobStoreConfig) -> BlobStore:
    """
    Create the blob store selected in configuration.

    Args:
        config: The ``blob_store`` config section.

    Returns:
        A ready-to-use blob store.
    """
    if config.backend == BlobBackend.S3:
        from photosync.blobstore.s3 import S3BlobStore

        return S3BlobStore(config.container, endpoint_url=config.endpoint_url, region=config.region)
    return LocalBlobStore(config.root, config.container)


__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "BLOB_EXTENSION",
    "sanitize_blob_name",
    "blob_name_for_code",
    "extract_blob_name",
    "create_blob_store",
]
