# PhotoSync Import Pipeline
# Folder -> ledger transfer with duplicate detection and archiving

import logging
import os
from pathlib import Path

from photosync.config.schema import PhotoSettings
from photosync.errors import ConnectivityError, StoreError, ValidationError
from photosync.files import FileStore
from photosync.store.repository import RecordRepository
from photosync.store.retry import RetryPolicy
from photosync.sync import rules
from photosync.sync.pipeline import Pipeline
from photosync.sync.record import Clock, PhotoRecord, utc_now
from photosync.sync.results import ImportResult, ItemOutcome

SOURCE_PREFIX = "FILE:"


def printable_name(name: str) -> str:
    """File name with undecodable bytes replaced, safe to log and print."""
    return os.fsencode(name).decode("utf-8", "replace")


class ImportPipeline(Pipeline):
    """
    Import JPG files from a folder into the ledger.

    Files are processed one at a time; a failing file is recorded and the
    run continues. Successful and duplicate files are archived only after
    every file has been written to the ledger.
    """

    name = "import"

    def __init__(
        self,
        repository: RecordRepository,
        files: FileStore,
        settings: PhotoSettings,
        *,
        retry: RetryPolicy | None = None,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize pipeline.

        Args:
            repository: Ledger to write records to.
            files: File store for reading and archiving.
            settings: The ``photos`` config section.
            retry: Retry policy for store calls.
            clock: Source of "now".
            logger: Logger to use.
        """
        super().__init__(repository, retry=retry, clock=clock, logger=logger)
        self.files = files
        self.settings = settings

    def run(self, folder: str | None = None, *, skip_archive: bool = False) -> ImportResult:
        """
        Import every JPG file directly inside a folder.

        Args:
            folder: Source folder (defaults to ``photos.import_folder``).
            skip_archive: Leave imported files in place.

        Returns:
            ImportResult with per-file outcomes.
        """
        folder = folder or self.settings.import_folder
        result = ImportResult(folder=folder or "", started_at=self.clock())

        if not folder:
            return result.abort("Import folder is not configured", self.clock())

        try:
            source = self.files.validate_folder(folder)
            self.ensure_repository()
        except (ValidationError, ConnectivityError) as e:
            self.logger.error("Import aborted: %s", e)
            return result.abort(str(e), self.clock())

        candidates = self.files.list_images(source)
        result.found = len(candidates)
        if not candidates:
            self.logger.warning("No JPG files found in %s", source)
            return result.finish(self.clock())

        self.logger.info("Found %d JPG files in %s", len(candidates), source)

        to_archive: list[Path] = []
        for path in candidates:
            if self._import_file(path, result):
                to_archive.append(path)

        if to_archive and self._archive_enabled(skip_archive):
            outcomes = self.files.archive_many(
                to_archive,
                self.settings.imported_archive_folder,
                self.settings.max_parallel_operations,
            )
            result.archived = sum(1 for outcome in outcomes if outcome.success)
            self.logger.info("Archived %d of %d files", result.archived, len(to_archive))

        result.finish(self.clock())
        self.logger.info(
            "Import completed: %d succeeded, %d failed, %d duplicates",
            result.succeeded,
            result.failed,
            result.duplicates,
        )
        return result

    def _archive_enabled(self, skip_archive: bool) -> bool:
        return not skip_archive and self.settings.enable_auto_archive and bool(self.settings.imported_archive_folder)

    def _import_file(self, path: Path, result: ImportResult) -> bool:
        """
        Import one file.

        Returns:
            True if the file should be archived.
        """
        code = path.stem.strip()
        if not code:
            result.add(path.name, ItemOutcome.SKIPPED, f"{path.name} (no code)")
            return False

        # The ledger stores text as UTF-8; undecodable file names cannot be keyed
        try:
            str(path).encode("utf-8")
        except UnicodeEncodeError:
            name = printable_name(path.name)
            self.logger.error("Failed to import %s: file name is not valid UTF-8", name)
            result.add(printable_name(code), ItemOutcome.FAILED, name, "file name is not valid UTF-8")
            return False

        try:
            data = self.files.read_all(path)
            if not data:
                result.add(code, ItemOutcome.SKIPPED, f"{path.name} (empty file)")
                return False

            digest = self.files.hash(data) if self.settings.track_file_hash else None

            if digest and self.settings.enable_duplicate_check:
                existing = self._call(self.repository.find_duplicate_by_hash, digest, exclude_code=code)
                if rules.is_duplicate(code, existing):
                    self.logger.info("Skipping %s: duplicate of %s", path.name, existing.code)
                    result.add(code, ItemOutcome.DUPLICATE, f"{code} (duplicate of {existing.code})")
                    return True

            now = self.clock()
            source = f"{SOURCE_PREFIX}{path}"
            record = PhotoRecord(
                code=code,
                image_data=data,
                content_hash=digest,
                byte_size=len(data),
                created_at=now,
                imported_at=now,
                content_modified_at=now,
                source_descriptor=source,
                source_file_name=path.name,
            )
            self._call(self.repository.upsert, record)
            # Rewrites the values the upsert just stored, so a rerun after a
            # failure here converges on the same row
            self._call(self.repository.update_import_tracking, code, now, source, path.name, digest, len(data))
        except (OSError, StoreError) as e:
            self.logger.error("Failed to import %s: %s", path.name, e)
            result.add(code, ItemOutcome.FAILED, path.name, str(e))
            return False

        self.logger.debug("Imported %s as %s (%s)", path.name, code, record.size_formatted)
        result.add(code, ItemOutcome.SUCCEEDED, path.name)
        return True
