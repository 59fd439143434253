# PhotoSync Blob Sync Pipelines
# Ledger <-> blob store transfers (upload and download)

import logging

from photosync.blobstore.base import BlobStore
from photosync.errors import ConnectivityError, StoreError
from photosync.store.repository import RecordRepository
from photosync.store.retry import RetryPolicy
from photosync.sync.pipeline import Pipeline
from photosync.sync.record import Clock, PhotoRecord, utc_now
from photosync.sync.results import BlobSyncResult, ItemOutcome


class _BlobPipeline(Pipeline):
    """Common setup for pipelines that talk to the blob store."""

    def __init__(
        self,
        repository: RecordRepository,
        blob_store: BlobStore,
        *,
        retry: RetryPolicy | None = None,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ):
        super().__init__(repository, retry=retry, clock=clock, logger=logger)
        self.blob_store = blob_store

    def _prepare(self, result: BlobSyncResult, finder) -> list[PhotoRecord] | None:
        """Run pre-checks and load candidates; None means the batch was aborted."""
        try:
            self.ensure_repository()
            self._ensure_reachable("Blob store", self.blob_store.test_connection)
            candidates = self._call(finder)
        except (ConnectivityError, StoreError) as e:
            self.logger.error("%s aborted: %s", self.name.capitalize(), e)
            result.abort(str(e), self.clock())
            return None

        result.found = len(candidates)
        return list(candidates)

    def _finish(self, result: BlobSyncResult) -> BlobSyncResult:
        result.finish(self.clock())
        self.logger.info(
            "%s completed: %d succeeded, %d failed, %d skipped",
            self.name.capitalize(),
            result.succeeded,
            result.failed,
            result.skipped,
        )
        return result


class UploadPipeline(_BlobPipeline):
    """Upload local payloads to the blob store."""

    name = "upload"

    def run(self, *, force: bool = False) -> BlobSyncResult:
        """
        Upload records to the blob store.

        Args:
            force: Re-upload records whose local payload changed after
                their last upload, instead of never-uploaded records.

        Returns:
            BlobSyncResult with per-record outcomes.
        """
        result = BlobSyncResult(direction="upload", forced=force, started_at=self.clock())
        finder = self.repository.find_needing_blob_sync if force else self.repository.find_missing_blob_path

        candidates = self._prepare(result, finder)
        if candidates is None:
            return result
        if not candidates:
            self.logger.warning("No records to upload")
            return self._finish(result)

        self.logger.info("Uploading %d records%s", len(candidates), " (force sync)" if force else "")
        for record in candidates:
            self._upload(record, force, result)
        return self._finish(result)

    def _upload(self, record: PhotoRecord, force: bool, result: BlobSyncResult) -> None:
        if not record.has_image_data:
            self.logger.warning("Record %s has no data to upload", record.code)
            result.add(record.code, ItemOutcome.SKIPPED, f"{record.code} (no image data)")
            return

        if force and record.has_blob_path:
            try:
                self._call(self.blob_store.delete, record.blob_path)
                self.logger.debug("Deleted existing blob for %s before re-upload", record.code)
            except StoreError as e:
                self.logger.warning("Failed to delete existing blob for %s, continuing: %s", record.code, e)

        try:
            blob_path = self._call(self.blob_store.upload, record.code, record.image_data)
            updated = self._call(self.repository.update_blob_path, record.code, blob_path)
        except StoreError as e:
            self.logger.error("Failed to upload %s: %s", record.code, e)
            result.add(record.code, ItemOutcome.FAILED, error=str(e))
            return

        if not updated:
            self.logger.error("Failed to store blob path for %s", record.code)
            result.add(record.code, ItemOutcome.FAILED, error="record update failed")
            return

        self.logger.debug("Uploaded %s to %s", record.code, blob_path)
        result.add(record.code, ItemOutcome.SUCCEEDED, blob_path)


class DownloadPipeline(_BlobPipeline):
    """Fill missing local payloads from the blob store."""

    name = "download"

    def run(self) -> BlobSyncResult:
        """
        Download blobs for records without a local payload.

        Returns:
            BlobSyncResult with per-record outcomes.
        """
        result = BlobSyncResult(direction="download", started_at=self.clock())

        candidates = self._prepare(result, self.repository.find_missing_image_data)
        if candidates is None:
            return result
        if not candidates:
            self.logger.warning("No records to download")
            return self._finish(result)

        self.logger.info("Downloading %d records", len(candidates))
        for record in candidates:
            self._download(record, result)
        return self._finish(result)

    def _download(self, record: PhotoRecord, result: BlobSyncResult) -> None:
        if not record.has_blob_path:
            self.logger.warning("Record %s has no blob path", record.code)
            result.add(record.code, ItemOutcome.SKIPPED, f"{record.code} (no blob path)")
            return

        try:
            data = self._call(self.blob_store.download, record.blob_path)
            updated = self._call(self.repository.update_image_data, record.code, data)
        except StoreError as e:
            self.logger.error("Failed to download %s: %s", record.code, e)
            result.add(record.code, ItemOutcome.FAILED, error=str(e))
            return

        if not updated:
            self.logger.error("Failed to store image data for %s", record.code)
            result.add(record.code, ItemOutcome.FAILED, error="record update failed")
            return

        self.logger.debug("Downloaded %s (%d bytes)", record.code, len(data))
        result.add(record.code, ItemOutcome.SUCCEEDED, f"{len(data)} bytes")
