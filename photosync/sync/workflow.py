# PhotoSync Workflow Orchestrator
# Chains transfer stages with optional field reset and dry-run preview

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from photosync.blobstore.base import BlobStore
from photosync.config.schema import PhotoSettings
from photosync.errors import ConnectivityError, StoreError, ValidationError
from photosync.files import FileStore
from photosync.store.repository import RecordRepository, resolve_clear_field
from photosync.store.retry import RetryPolicy
from photosync.sync.blobsync import DownloadPipeline, UploadPipeline
from photosync.sync.exporter import ExportPipeline
from photosync.sync.importer import ImportPipeline
from photosync.sync.pipeline import Pipeline
from photosync.sync.record import Clock, utc_now
from photosync.sync.results import BatchResult

DEFAULT_WORKFLOW = "import,azure,export"


class Stage(str, Enum):
    """Workflow stages in execution order."""

    IMPORT = "import"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    EXPORT = "export"


STAGE_ORDER = [Stage.IMPORT, Stage.UPLOAD, Stage.DOWNLOAD, Stage.EXPORT]

STAGE_ALIASES: dict[str, set[Stage]] = {
    "import": {Stage.IMPORT},
    "upload": {Stage.UPLOAD},
    "download": {Stage.DOWNLOAD},
    "export": {Stage.EXPORT},
    "azure": {Stage.UPLOAD, Stage.DOWNLOAD},
    "blob": {Stage.UPLOAD, Stage.DOWNLOAD},
    "toazure": {Stage.UPLOAD},
    "toblobstore": {Stage.UPLOAD},
    "fromazure": {Stage.DOWNLOAD},
    "fromblobstore": {Stage.DOWNLOAD},
}


def parse_stages(workflow: str | None) -> list[Stage]:
    """
    Parse a comma-separated workflow string.

    Args:
        workflow: Stage names and aliases, e.g. ``"import,azure,export"``.
            Empty or None selects the default workflow.

    Returns:
        Requested stages in execution order, regardless of input order.

    Raises:
        ValidationError: If a name is not a known stage or alias.
    """
    names = [name.strip().lower() for name in (workflow or DEFAULT_WORKFLOW).split(",") if name.strip()]
    if not names:
        names = DEFAULT_WORKFLOW.split(",")

    selected: set[Stage] = set()
    for name in names:
        if name not in STAGE_ALIASES:
            valid = ", ".join(sorted(STAGE_ALIASES))
            raise ValidationError(f"Unknown workflow step '{name}' (valid: {valid})")
        selected |= STAGE_ALIASES[name]

    return [stage for stage in STAGE_ORDER if stage in selected]


def _stage_ok(result: BatchResult) -> bool:
    """A stage passes when it succeeded, or ran without candidates and was not aborted."""
    return result.success or (result.found == 0 and not result.error_message)


@dataclass
class WorkflowResult:
    """Result of a workflow run."""

    stages: list[Stage] = field(default_factory=list)
    dry_run: bool = False
    success: bool = False
    cleared_field: str | None = None
    cleared_count: int = 0
    results: dict[Stage, BatchResult] = field(default_factory=dict)
    previews: dict[Stage, int] = field(default_factory=dict)
    error_message: str | None = None
    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None

    @property
    def total_processed(self) -> int:
        return sum(result.succeeded for result in self.results.values())

    @property
    def total_failed(self) -> int:
        return sum(result.failed for result in self.results.values())

    @property
    def duration(self) -> timedelta:
        if self.completed_at is None:
            return timedelta(0)
        return self.completed_at - self.started_at

    @property
    def summary(self) -> str:
        """One-line description of what the run did."""
        if self.dry_run:
            return "Dry run completed - no changes made"

        parts = []
        if self.cleared_field and self.cleared_count:
            parts.append(f"Cleared {self.cleared_count} records in {self.cleared_field}")
        for stage in STAGE_ORDER:
            result = self.results.get(stage)
            if result is not None and result.found > 0:
                parts.append(result.summary)

        if not parts:
            return "Workflow completed: no operations performed"
        return "Workflow completed: " + ", ".join(parts)


class WorkflowOrchestrator(Pipeline):
    """
    Run import, upload, download and export as one workflow.

    Stages always execute in the fixed order import, upload, download,
    export. A failing stage does not stop later stages.
    """

    name = "workflow"

    def __init__(
        self,
        repository: RecordRepository,
        blob_store: BlobStore,
        files: FileStore,
        settings: PhotoSettings,
        *,
        retry: RetryPolicy | None = None,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            repository: Ledger.
            blob_store: Remote blob store.
            files: Local file store.
            settings: The ``photos`` config section.
            retry: Retry policy shared by every stage.
            clock: Source of "now".
            logger: Logger to use.
        """
        super().__init__(repository, retry=retry, clock=clock, logger=logger)
        self.blob_store = blob_store
        self.files = files
        self.settings = settings

        shared = {"retry": self.retry, "clock": clock}
        self.importer = ImportPipeline(repository, files, settings, **shared)
        self.uploader = UploadPipeline(repository, blob_store, **shared)
        self.downloader = DownloadPipeline(repository, blob_store, **shared)
        self.exporter = ExportPipeline(repository, files, settings, **shared)

    def run(
        self,
        stages: list[Stage] | str | None = None,
        *,
        clear_field: str | None = None,
        dry_run: bool = False,
        skip_archive: bool = False,
    ) -> WorkflowResult:
        """
        Run a workflow.

        Args:
            stages: Stages or a workflow string; None selects the default.
            clear_field: Column to reset on every record before the stages run.
            dry_run: Only count candidates; change nothing.
            skip_archive: Leave imported files in place.

        Returns:
            WorkflowResult with per-stage results or previews.

        Raises:
            ValidationError: If the workflow string or the field name is invalid.
        """
        if stages is None or isinstance(stages, str):
            stages = parse_stages(stages)
        else:
            stages = [stage for stage in STAGE_ORDER if stage in set(stages)]

        if clear_field:
            resolve_clear_field(clear_field)

        result = WorkflowResult(stages=stages, dry_run=dry_run, cleared_field=clear_field, started_at=self.clock())
        self.logger.info("Starting workflow: %s%s", " -> ".join(s.value for s in stages), " (dry run)" if dry_run else "")

        try:
            self.ensure_repository()
        except ConnectivityError as e:
            self.logger.error("Workflow aborted: %s", e)
            result.error_message = str(e)
            result.completed_at = self.clock()
            return result

        try:
            if dry_run:
                self._preview(stages, result)
            else:
                if clear_field:
                    self._clear(clear_field, result)
                for stage in stages:
                    result.results[stage] = self._run_stage(stage, skip_archive)
        except StoreError as e:
            self.logger.error("Workflow aborted: %s", e)
            result.error_message = str(e)
            result.completed_at = self.clock()
            return result

        result.success = not dry_run and all(_stage_ok(r) for r in result.results.values())
        result.completed_at = self.clock()
        self.logger.info(
            "Workflow completed: %d processed, %d failed",
            result.total_processed,
            result.total_failed,
        )
        return result

    def _clear(self, field_name: str, result: WorkflowResult) -> None:
        self.logger.info("Clearing field %s", field_name)
        result.cleared_count = self._call(self.repository.clear_field, field_name)
        if result.cleared_count == 0:
            self.logger.warning("No records were cleared; field %s may already be empty", field_name)
        else:
            self.logger.info("Cleared %d records in %s", result.cleared_count, field_name)

    def _run_stage(self, stage: Stage, skip_archive: bool) -> BatchResult:
        self.logger.info("Running %s stage", stage.value)
        if stage == Stage.IMPORT:
            stage_result = self.importer.run(skip_archive=skip_archive)
        elif stage == Stage.UPLOAD:
            stage_result = self.uploader.run()
        elif stage == Stage.DOWNLOAD:
            stage_result = self.downloader.run()
        else:
            stage_result = self.exporter.run(incremental=True, force=False)

        if stage_result.error_message:
            self.logger.warning("%s stage failed: %s", stage.value.capitalize(), stage_result.error_message)
        else:
            self.logger.info("%s stage: %s", stage.value.capitalize(), stage_result.summary)
        return stage_result

    def _preview(self, stages: list[Stage], result: WorkflowResult) -> None:
        """Count candidates per stage using read-only queries."""
        for stage in stages:
            if stage == Stage.IMPORT:
                count = self.files.folder_info(self.settings.import_folder).image_files if self.settings.import_folder else 0
            elif stage == Stage.UPLOAD:
                count = len(self._call(self.repository.find_missing_blob_path))
            elif stage == Stage.DOWNLOAD:
                count = len(self._call(self.repository.find_missing_image_data))
            else:
                count = len(self._call(self.repository.find_needing_export))
            result.previews[stage] = count
            self.logger.info("Dry run: %s would process %d records", stage.value, count)
