# PhotoSync Console Output
# Rich-based rendering of pipeline results and status reports

from datetime import datetime

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from photosync.files import FolderInfo
from photosync.sync.record import StatusSnapshot, format_size, utc_now
from photosync.sync.results import BatchResult, BlobSyncResult, ExportResult, ImportResult, ItemOutcome
from photosync.sync.workflow import WorkflowResult

_OUTCOME_ICONS = {
    ItemOutcome.SUCCEEDED: "[green]✓[/green]",
    ItemOutcome.FAILED: "[red]✗[/red]",
    ItemOutcome.SKIPPED: "[dim]○[/dim]",
    ItemOutcome.DUPLICATE: "[yellow]=[/yellow]",
}


def time_ago(moment: datetime, now: datetime | None = None) -> str:
    """
    Human-readable age of a timestamp.

    Args:
        moment: Past timestamp (naive UTC).
        now: Reference time (defaults to current UTC).

    Returns:
        Text like ``"just now"``, ``"5 minutes ago"`` or ``"2 years ago"``.
    """
    delta = (now or utc_now()) - moment
    minutes = delta.total_seconds() / 60

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{int(minutes)} minutes ago"
    if minutes < 60 * 24:
        return f"{int(minutes / 60)} hours ago"
    if delta.days < 30:
        return f"{delta.days} days ago"
    if delta.days < 365:
        return f"{delta.days // 30} months ago"
    return f"{delta.days // 365} years ago"


def recommendations(snapshot: StatusSnapshot) -> list[str]:
    """Operator hints derived from a status snapshot."""
    hints = []
    if snapshot.needing_export > 0:
        hints.append(f"Run 'photosync export --incremental' to export {snapshot.needing_export:,} photos")
    if snapshot.pending_blob_sync > 0:
        hints.append(f"Run 'photosync toblobstore --force' to sync {snapshot.pending_blob_sync:,} photos to the blob store")
    if snapshot.duplicates > 0:
        hints.append(f"{snapshot.duplicates:,} duplicate photos detected in the ledger")
    return hints


def _fmt(moment: datetime | None) -> str:
    return moment.strftime("%Y-%m-%d %H:%M") if moment else "-"


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for pipeline runs and status reports.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(force_terminal=colored, no_color=not colored)

    @property
    def rich(self) -> RichConsole:
        """Underlying Rich console."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def print_check(self, label: str, ok: bool, detail: str = "") -> None:
        """Print one line of a connectivity or configuration check."""
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        suffix = f" [dim]{detail}[/dim]" if detail else ""
        self._console.print(f"{mark} {label}{suffix}")

    def _print_items(self, result: BatchResult) -> None:
        """Per-item lines; only problems unless verbose."""
        for item in result.items:
            if item.outcome == ItemOutcome.SUCCEEDED and not self.verbose:
                continue
            icon = _OUTCOME_ICONS[item.outcome]
            text = item.detail or item.code
            if item.error:
                text = f"{item.code}: {item.error}"
            self._console.print(f"    {icon} {text}")

    def _print_result_panel(self, title: str, result: BatchResult, lines: list[str]) -> None:
        if result.error_message:
            self._console.print(Panel(f"[red]{result.error_message}[/red]", title=title, border_style="red"))
            return

        self._print_items(result)
        border = "green" if result.success and result.failed == 0 else ("yellow" if result.success else "red")
        body = "\n".join([result.summary, *lines])
        self._console.print(Panel(body, title=title, border_style=border))

    def print_import_result(self, result: ImportResult) -> None:
        """Print import result summary."""
        lines = [
            f"Found: {result.found}  Succeeded: {result.succeeded}  Failed: {result.failed}",
            f"Duplicates: {result.duplicates}  Skipped: {result.skipped}  Archived: {result.archived}",
        ]
        self._print_result_panel("Import", result, lines)

    def print_export_result(self, result: ExportResult) -> None:
        """Print export result summary."""
        lines = [
            f"Folder: {result.folder}",
            f"Found: {result.found}  Succeeded: {result.succeeded}  Failed: {result.failed}  Skipped: {result.skipped}",
        ]
        self._print_result_panel("Export", result, lines)

    def print_blob_result(self, result: BlobSyncResult) -> None:
        """Print upload or download result summary."""
        title = "Upload" if result.direction == "upload" else "Download"
        if result.forced:
            title += " (force sync)"
        lines = [f"Found: {result.found}  Succeeded: {result.succeeded}  Failed: {result.failed}  Skipped: {result.skipped}"]
        self._print_result_panel(title, result, lines)

    def print_workflow_result(self, result: WorkflowResult) -> None:
        """
        Print workflow summary or dry-run preview.

        Args:
            result: Workflow result to display.
        """
        steps = " → ".join(stage.value for stage in result.stages)

        if result.error_message:
            self._console.print(Panel(f"[red]{result.error_message}[/red]", title="Workflow", border_style="red"))
            return

        if result.dry_run:
            table = Table(show_header=True, header_style="bold", title="Dry run preview")
            table.add_column("Stage")
            table.add_column("Would process", justify="right")
            for stage in result.stages:
                table.add_row(stage.value, str(result.previews.get(stage, 0)))
            self._console.print(f"Workflow: {steps}")
            if result.cleared_field:
                self._console.print(f"Would clear field: {result.cleared_field}")
            self._console.print(table)
            self._console.print("[dim]No changes were made[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Stage")
        table.add_column("Found", justify="right")
        table.add_column("Succeeded", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Status")
        for stage in result.stages:
            stage_result = result.results.get(stage)
            if stage_result is None:
                continue
            if stage_result.error_message:
                status = f"[red]{stage_result.error_message}[/red]"
            elif stage_result.success:
                status = "[green]ok[/green]"
            else:
                status = "[red]failed[/red]"
            table.add_row(
                stage.value,
                str(stage_result.found),
                str(stage_result.succeeded),
                str(stage_result.failed),
                status,
            )

        if result.cleared_field:
            self._console.print(f"Cleared {result.cleared_count} records in {result.cleared_field}")
        self._console.print(table)
        self._console.print(
            Panel(
                f"{result.summary}\nProcessed: {result.total_processed}  Failed: {result.total_failed}",
                title="Workflow",
                border_style="green" if result.success else "red",
            )
        )

    def print_status(
        self,
        *,
        connected: bool,
        count: int | None,
        import_folder: str,
        export_folder: str,
        import_info: FolderInfo | None = None,
    ) -> None:
        """Print the short status check."""
        self._console.print("[bold]PhotoSync Status Check[/bold]")
        self.print_check("Ledger connection", connected)
        if count is not None:
            self._console.print(f"Image count: {count} images")
        self._console.print(f"Import folder: {import_folder or '[dim]not configured[/dim]'}")
        if import_info is not None and import_info.exists:
            self._console.print(
                f"  {import_info.image_files} JPG files, {format_size(import_info.total_bytes)}"
            )
        self._console.print(f"Export folder: {export_folder or '[dim]not configured[/dim]'}")

    def print_sync_status(self, snapshot: StatusSnapshot, *, detailed: bool = False, now: datetime | None = None) -> None:
        """
        Print the full sync status report.

        Args:
            snapshot: Ledger statistics.
            detailed: Append every statistic as key/value pairs.
            now: Reference time for "time ago" strings.
        """
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Metric")
        table.add_column("Value", justify="right")

        table.add_row("[bold]Overview[/bold]", "")
        table.add_row("Total photos", f"{snapshot.total:,}")
        table.add_row("Photos with data", f"{snapshot.with_data:,}")
        table.add_row("Photos in blob store", f"{snapshot.in_blob:,}")
        table.add_row("[bold]Export[/bold]", "")
        table.add_row("Never exported", f"{snapshot.never_exported:,}")
        table.add_row("Exports out of date", f"{snapshot.stale_exports:,}")
        table.add_row("Total needing export", f"{snapshot.needing_export:,}")
        table.add_row("[bold]Blob store[/bold]", "")
        table.add_row("Pending sync", f"{snapshot.pending_blob_sync:,}")
        table.add_row("[bold]Duplicates[/bold]", "")
        table.add_row("Photos with hash", f"{snapshot.with_hash:,}")
        table.add_row("Unique photos", f"{snapshot.unique_hashes:,}")
        table.add_row("Duplicates found", f"{snapshot.duplicates:,}")

        self._console.print(Panel(table, title="PhotoSync Status Report", border_style="blue"))

        timeline = [
            ("First import", snapshot.first_import, False),
            ("Last import", snapshot.last_import, True),
            ("First export", snapshot.first_export, False),
            ("Last export", snapshot.last_export, True),
            ("First blob upload", snapshot.first_blob_upload, False),
            ("Last blob upload", snapshot.last_blob_upload, True),
        ]
        entries = [(label, moment, ago) for label, moment, ago in timeline if moment is not None]
        if entries:
            self._console.print("[bold]Timeline[/bold]")
            for label, moment, ago in entries:
                suffix = f" ({time_ago(moment, now)})" if ago else ""
                self._console.print(f"  {label}: {_fmt(moment)}{suffix}")

        hints = recommendations(snapshot)
        if hints:
            self._console.print("[bold]Recommendations[/bold]")
            for hint in hints:
                self._console.print(f"  • {hint}")

        if detailed:
            self._console.print("[bold]Detailed statistics[/bold]")
            for key, value in sorted(snapshot.as_dict().items()):
                self._console.print(f"  {key}: {'null' if value is None else value}")

    def print_config_summary(self, config_path: str, ledger_url: str, backend: str) -> None:
        """Print configuration summary."""
        self._console.print(
            Panel(
                f"Config: {config_path}\nLedger: {ledger_url}\nBlob store: {backend}",
                title="PhotoSync Configuration",
                border_style="blue",
            )
        )


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
