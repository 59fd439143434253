# PhotoSync Batch Results
# Per-item outcomes and batch summaries returned by every pipeline

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from photosync.sync.record import utc_now


class ItemOutcome(str, Enum):
    """What happened to one record or file in a batch."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    DUPLICATE = "duplicate"


@dataclass
class ItemResult:
    """Outcome for one record or file."""

    code: str
    outcome: ItemOutcome
    detail: str = ""
    error: str | None = None


@dataclass
class BatchResult:
    """
    Result of one pipeline run.

    Partial failure is expressed here, never raised: ``items`` holds one
    outcome per candidate and ``error_message`` is only set when a pre-check
    stopped the run before any candidate was processed.
    """

    success: bool = False
    found: int = 0
    items: list[ItemResult] = field(default_factory=list)
    error_message: str | None = None
    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None

    def add(self, code: str, outcome: ItemOutcome, detail: str = "", error: str | None = None) -> ItemResult:
        """Record the outcome of one candidate."""
        item = ItemResult(code=code, outcome=outcome, detail=detail, error=error)
        self.items.append(item)
        return item

    def _count(self, outcome: ItemOutcome) -> int:
        return sum(1 for item in self.items if item.outcome == outcome)

    def _labels(self, outcome: ItemOutcome) -> list[str]:
        return [item.detail or item.code for item in self.items if item.outcome == outcome]

    @property
    def succeeded(self) -> int:
        return self._count(ItemOutcome.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(ItemOutcome.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ItemOutcome.SKIPPED)

    @property
    def failed_codes(self) -> list[str]:
        return [item.code for item in self.items if item.outcome == ItemOutcome.FAILED]

    @property
    def skipped_codes(self) -> list[str]:
        return self._labels(ItemOutcome.SKIPPED)

    @property
    def duration(self) -> timedelta:
        if self.completed_at is None:
            return timedelta(0)
        return self.completed_at - self.started_at

    @property
    def summary(self) -> str:
        return f"{self.succeeded}/{self.found} succeeded"

    def is_successful(self) -> bool:
        """Success rule for a finished batch: something succeeded, or there was nothing to do."""
        return self.succeeded > 0 or self.found == 0

    def finish(self, completed_at: datetime | None = None) -> "BatchResult":
        """Stamp completion and evaluate the success rule."""
        self.completed_at = completed_at or utc_now()
        self.success = self.is_successful()
        return self

    def abort(self, message: str, completed_at: datetime | None = None) -> "BatchResult":
        """Mark the batch as failed before any candidate was processed."""
        self.error_message = message
        self.success = False
        self.completed_at = completed_at or utc_now()
        return self


@dataclass
class ImportResult(BatchResult):
    """Result of importing a folder."""

    folder: str = ""
    archived: int = 0

    @property
    def duplicates(self) -> int:
        return self._count(ItemOutcome.DUPLICATE)

    @property
    def duplicate_files(self) -> list[str]:
        """Labels like ``"<code> (duplicate of <other>)"``."""
        return self._labels(ItemOutcome.DUPLICATE)

    @property
    def summary(self) -> str:
        text = f"Imported {self.succeeded}/{self.found} images"
        if self.duplicates:
            text += f", {self.duplicates} duplicates"
        if self.archived:
            text += f", {self.archived} archived"
        return text


@dataclass
class ExportResult(BatchResult):
    """Result of exporting to a folder."""

    folder: str = ""
    incremental: bool = False
    exported_files: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        mode = "incremental" if self.incremental else "full"
        return f"Exported {self.succeeded}/{self.found} images ({mode})"


@dataclass
class BlobSyncResult(BatchResult):
    """Result of an upload or download batch."""

    direction: str = "upload"
    forced: bool = False

    def is_successful(self) -> bool:
        return self.succeeded > 0 or self.skipped == self.found

    @property
    def summary(self) -> str:
        verb = "Uploaded" if self.direction == "upload" else "Downloaded"
        text = f"{verb} {self.succeeded}/{self.found} images"
        if self.skipped:
            text += f", {self.skipped} skipped"
        return text
