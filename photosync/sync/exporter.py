# PhotoSync Export Pipeline
# Ledger -> folder transfer with incremental change tracking

import logging
import re
from datetime import datetime

from photosync.config.schema import PhotoSettings
from photosync.errors import ConnectivityError, StoreError, ValidationError
from photosync.files import FileStore
from photosync.store.repository import RecordRepository
from photosync.store.retry import RetryPolicy
from photosync.sync.pipeline import Pipeline
from photosync.sync.record import Clock, utc_now
from photosync.sync.results import ExportResult, ItemOutcome
from photosync.utils.paths import sanitize_file_name

DEFAULT_EXTENSION = ".jpg"

_TOKEN = re.compile(r"\{(\w+)(?::([^}]*))?\}")
_DATE_PARTS = re.compile(r"yyyy|MM|dd|HH|mm|ss")
_DATE_DIRECTIVES = {"yyyy": "%Y", "MM": "%m", "dd": "%d", "HH": "%H", "mm": "%M", "ss": "%S"}


def _format_date(value: datetime, pattern: str) -> str:
    """Render a date with a yyyy/MM/dd/HH/mm/ss pattern; other characters are literal."""
    out = []
    pos = 0
    for match in _DATE_PARTS.finditer(pattern):
        out.append(pattern[pos : match.start()])
        out.append(value.strftime(_DATE_DIRECTIVES[match.group(0)]))
        pos = match.end()
    out.append(pattern[pos:])
    return "".join(out)


def format_export_file_name(template: str, code: str, export_date: datetime) -> str:
    """
    Build the export file name for a record.

    Supported tokens are ``{Code}`` and ``{ExportDate:<pattern>}``, e.g.
    ``{ExportDate:yyyyMMdd}``. Unknown tokens are kept as written.

    Args:
        template: File name template from configuration.
        code: Record code.
        export_date: Timestamp of the export run.

    Returns:
        A sanitized file name, with ``.jpg`` appended when the template
        has no extension.
    """
    if not template:
        template = "{Code}"

    def replace(match: re.Match) -> str:
        token, pattern = match.group(1), match.group(2)
        if token == "Code":
            return code
        if token == "ExportDate":
            return _format_date(export_date, pattern or "yyyyMMdd")
        return match.group(0)

    name = _TOKEN.sub(replace, template)
    if "." not in _TOKEN.sub("", template):
        name += DEFAULT_EXTENSION
    return sanitize_file_name(name)


class ExportPipeline(Pipeline):
    """Write record payloads to a folder and track when each was exported."""

    name = "export"

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
        super().__init__(repository, retry=retry, clock=clock, logger=logger)
        self.files = files
        self.settings = settings

    def is_incremental(self, incremental: bool, force: bool) -> bool:
        """Whether a run with these flags only exports changed records."""
        return incremental and not force and self.settings.use_incremental_export

    def run(self, folder: str | None = None, *, incremental: bool = False, force: bool = False) -> ExportResult:
        """
        Export records to a folder.

        Args:
            folder: Target folder (defaults to ``photos.export_folder``).
            incremental: Only export records changed since their last export.
            force: Export everything even when incremental is requested.

        Returns:
            ExportResult with per-record outcomes.
        """
        folder = folder or self.settings.export_folder
        effective = self.is_incremental(incremental, force)
        result = ExportResult(folder=folder or "", incremental=effective, started_at=self.clock())

        if not folder:
            return result.abort("Export folder is not configured", self.clock())

        try:
            self.ensure_repository()
            target = self.files.validate_folder(folder, create=True)
            candidates = self._call(
                self.repository.find_needing_export if effective else self.repository.find_all
            )
        except (ValidationError, ConnectivityError, StoreError) as e:
            self.logger.error("Export aborted: %s", e)
            return result.abort(str(e), self.clock())

        result.found = len(candidates)
        if not candidates:
            self.logger.warning("No records to export")
            return result.finish(self.clock())

        self.logger.info("Exporting %d records to %s (%s)", len(candidates), target, "incremental" if effective else "full")
        export_date = self.clock()

        for record in candidates:
            if record.has_image_data:
                try:
                    file_name = format_export_file_name(self.settings.export_file_name_format, record.code, export_date)
                    written = self.files.write_all(target, file_name, record.image_data)
                    self._call(self.repository.update_export_tracking, record.code, export_date)
                except (OSError, StoreError) as e:
                    self.logger.error("Failed to export %s: %s", record.code, e)
                    result.add(record.code, ItemOutcome.FAILED, error=str(e))
                    continue
                result.exported_files.append(str(written))
                result.add(record.code, ItemOutcome.SUCCEEDED, written.name)
                self.logger.debug("Exported %s to %s (%s)", record.code, written, record.size_formatted)
            elif record.has_blob_path:
                self.logger.info("Skipped %s: stored in blob store only", record.code)
                result.add(record.code, ItemOutcome.SKIPPED, f"{record.code} (blob store only)")
            else:
                self.logger.warning("Record %s has no data to export", record.code)
                result.add(record.code, ItemOutcome.FAILED, error="no image data")

        result.finish(self.clock())
        self.logger.info(
            "Export completed: %d succeeded, %d failed, %d skipped",
            result.succeeded,
            result.failed,
            result.skipped,
        )
        return result
