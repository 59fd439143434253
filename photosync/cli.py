"""Click-based CLI for PhotoSync - photo sync between folders, ledger and blob store."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import click
import yaml

from photosync import __version__
from photosync.blobstore import BlobStore, create_blob_store
from photosync.config import (
    PhotoSyncConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from photosync.config.defaults import generate_default_config
from photosync.errors import StoreError, ValidationError
from photosync.files import FileStore
from photosync.logger import get_logger, setup_logging
from photosync.output.console import Console, create_console
from photosync.store.retry import RetryPolicy
from photosync.store.sql import SqlRecordRepository
from photosync.sync.blobsync import DownloadPipeline, UploadPipeline
from photosync.sync.exporter import ExportPipeline
from photosync.sync.importer import ImportPipeline
from photosync.sync.workflow import DEFAULT_WORKFLOW, WorkflowOrchestrator, parse_stages

logger = get_logger("cli")


@dataclass
class Services:
    """Configured collaborators for one CLI invocation."""

    config: PhotoSyncConfig
    config_path: Path
    console: Console
    repository: SqlRecordRepository
    retry: RetryPolicy
    files: FileStore = field(default_factory=FileStore)
    _blob_store: Optional[BlobStore] = None

    @property
    def blob_store(self) -> BlobStore:
        """Blob store, created on first use."""
        if self._blob_store is None:
            self._blob_store = create_blob_store(self.config.blob_store)
        return self._blob_store


def _config_path(ctx: click.Context) -> Path:
    return ctx.obj.get("config_path") or get_config_path()


def _load_services(ctx: click.Context) -> Services:
    """Load configuration and build the ledger, retry policy and consoles."""
    path = _config_path(ctx)
    verbose = ctx.obj.get("verbose", False)

    try:
        config = load_config(path)
    except (FileNotFoundError, ValidationError) as e:
        create_console(verbose=verbose).print_error(str(e))
        ctx.exit(1)

    verbose = verbose or config.output.verbose
    console = create_console(verbose=verbose, colored=config.output.colored)
    setup_logging(config.output.log_level, log_file=config.output.log_file, verbose=verbose)

    repository = SqlRecordRepository.from_url(config.ledger.url, echo=config.ledger.echo)
    try:
        repository.create_schema()
    except StoreError as e:
        logger.warning("Could not create ledger schema: %s", e)

    return Services(
        config=config,
        config_path=path,
        console=console,
        repository=repository,
        retry=RetryPolicy.from_config(config.retry),
    )


@click.group()
@click.version_option(version=__version__, prog_name="photosync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config file (default: ~/.config/photosync/config.yaml or $PHOTOSYNC_CONFIG)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """PhotoSync - synchronize photos between folders, a ledger database and a blob store.

    \b
    Typical flow:
      photosync import            folder -> ledger
      photosync toblobstore       ledger -> blob store
      photosync fromblobstore     blob store -> ledger
      photosync export            ledger -> folder
      photosync writeall          all of the above in one run
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# ============================================================================
# Transfer Commands
# ============================================================================


@cli.command("import")
@click.argument("folder", required=False)
@click.option("--skip-archive", is_flag=True, help="Leave imported files in place")
@click.pass_context
def import_photos(ctx: click.Context, folder: Optional[str], skip_archive: bool) -> None:
    """Import JPG files from FOLDER into the ledger.

    FOLDER defaults to photos.import_folder from the config file.
    """
    services = _load_services(ctx)
    pipeline = ImportPipeline(services.repository, services.files, services.config.photos, retry=services.retry)

    result = pipeline.run(folder, skip_archive=skip_archive)
    services.console.print_import_result(result)
    ctx.exit(0 if result.success else 1)


@cli.command("export")
@click.argument("folder", required=False)
@click.option("--incremental", "-i", is_flag=True, help="Only export records changed since their last export")
@click.option("--force", "-f", is_flag=True, help="Export every record, ignoring --incremental")
@click.pass_context
def export_photos(ctx: click.Context, folder: Optional[str], incremental: bool, force: bool) -> None:
    """Export ledger photos to FOLDER.

    FOLDER defaults to photos.export_folder from the config file.
    """
    services = _load_services(ctx)
    pipeline = ExportPipeline(services.repository, services.files, services.config.photos, retry=services.retry)

    result = pipeline.run(folder, incremental=incremental, force=force)
    services.console.print_export_result(result)
    ctx.exit(0 if result.success else 1)


@cli.command("toblobstore")
@click.option("--force", "-f", is_flag=True, help="Re-upload photos changed since their last upload")
@click.pass_context
def to_blob_store(ctx: click.Context, force: bool) -> None:
    """Upload ledger photos to the blob store."""
    services = _load_services(ctx)
    pipeline = UploadPipeline(services.repository, services.blob_store, retry=services.retry)

    result = pipeline.run(force=force)
    services.console.print_blob_result(result)
    ctx.exit(0 if result.success else 1)


@cli.command("fromblobstore")
@click.pass_context
def from_blob_store(ctx: click.Context) -> None:
    """Download photos missing from the ledger out of the blob store."""
    services = _load_services(ctx)
    pipeline = DownloadPipeline(services.repository, services.blob_store, retry=services.retry)

    result = pipeline.run()
    services.console.print_blob_result(result)
    ctx.exit(0 if result.success else 1)


@cli.command("writeall")
@click.argument("field_name", metavar="FIELD", required=False)
@click.option(
    "--workflow",
    "-w",
    default=DEFAULT_WORKFLOW,
    show_default=True,
    help="Comma-separated steps: import, upload, download, export, azure/blob (upload+download)",
)
@click.option("--skip-archive", is_flag=True, help="Leave imported files in place")
@click.option("--dry-run", "-n", is_flag=True, help="Preview without applying")
@click.pass_context
def write_all(ctx: click.Context, field_name: Optional[str], workflow: str, skip_archive: bool, dry_run: bool) -> None:
    """Run a complete sync workflow, optionally clearing FIELD first.

    FIELD (image_data or blob_path) is set to NULL on every record before
    the workflow runs, forcing those records to be processed again.

    \b
    Examples:
      photosync writeall
      photosync writeall image_data --workflow import
      photosync writeall --workflow toblobstore,export --dry-run
    """
    services = _load_services(ctx)

    try:
        stages = parse_stages(workflow)
        orchestrator = WorkflowOrchestrator(
            services.repository,
            services.blob_store,
            services.files,
            services.config.photos,
            retry=services.retry,
        )
        result = orchestrator.run(stages, clear_field=field_name, dry_run=dry_run, skip_archive=skip_archive)
    except ValidationError as e:
        services.console.print_error(str(e))
        ctx.exit(1)

    services.console.print_workflow_result(result)
    if dry_run:
        ctx.exit(1 if result.error_message else 0)
    ctx.exit(0 if result.success else 1)


# ============================================================================
# Status Commands
# ============================================================================


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show ledger connection, record count and folders."""
    services = _load_services(ctx)
    photos = services.config.photos

    connected = services.repository.test_connection()
    count = None
    if connected:
        try:
            count = services.repository.count()
        except StoreError as e:
            services.console.print_error(str(e))
            connected = False

    services.console.print_status(
        connected=connected,
        count=count,
        import_folder=photos.import_folder,
        export_folder=photos.export_folder,
        import_info=services.files.folder_info(photos.import_folder) if photos.import_folder else None,
    )
    ctx.exit(0 if connected else 1)


@cli.command("syncstatus")
@click.option("--detailed", "-d", is_flag=True, help="Also list every statistic")
@click.pass_context
def sync_status(ctx: click.Context, detailed: bool) -> None:
    """Show the sync status report: exports, blob sync, duplicates, timeline."""
    services = _load_services(ctx)

    if not services.repository.test_connection():
        services.console.print_error("Ledger connection failed")
        ctx.exit(1)

    try:
        snapshot = services.retry.call(services.repository.summary_stats)
    except StoreError as e:
        services.console.print_error(str(e))
        ctx.exit(1)

    services.console.print_sync_status(snapshot, detailed=detailed)


@cli.command("test")
@click.pass_context
def test_setup(ctx: click.Context) -> None:
    """Check configuration, ledger, blob store and folder access."""
    services = _load_services(ctx)
    console = services.console
    photos = services.config.photos

    console.print("[bold]PhotoSync Configuration Test[/bold]")

    valid, errors = validate_config_file(services.config_path)
    console.print_check("Configuration", valid, "; ".join(errors))

    ledger_ok = services.repository.test_connection()
    console.print_check("Ledger connection", ledger_ok, services.config.ledger.url)

    blob_ok = services.blob_store.test_connection()
    console.print_check("Blob store connection", blob_ok, services.config.blob_store.backend.value)

    try:
        services.files.validate_folder(photos.import_folder)
        import_ok, import_detail = True, photos.import_folder
    except ValidationError as e:
        import_ok, import_detail = False, str(e)
    console.print_check("Import folder access", import_ok, import_detail)

    try:
        services.files.validate_folder(photos.export_folder, create=True)
        export_ok, export_detail = True, photos.export_folder
    except ValidationError as e:
        export_ok, export_detail = False, str(e)
    console.print_check("Export folder access", export_ok, export_detail)

    passed = all((valid, ledger_ok, blob_ok, import_ok, export_ok))
    if passed:
        console.print_success("Overall test result: PASSED")
    else:
        console.print_error("Overall test result: FAILED")
    ctx.exit(0 if passed else 1)


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the ledger table and indexes."""
    services = _load_services(ctx)

    try:
        services.repository.create_schema()
    except StoreError as e:
        services.console.print_error(str(e))
        ctx.exit(1)

    services.console.print_success(f"Ledger ready: {services.config.ledger.url}")


# ============================================================================
# Configuration Commands
# ============================================================================


@cli.group()
def config() -> None:
    """Configuration file commands."""
    pass


@config.command("init")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def config_init(ctx: click.Context, force: bool) -> None:
    """Write a commented default config file."""
    console = create_console()
    path = _config_path(ctx)

    if force and path.exists():
        path.write_text(generate_default_config(), encoding="utf-8")
        console.print_success(f"Overwrote config: {path}")
        return

    path, created = ensure_config_exists(path)
    if created:
        console.print_success(f"Created config: {path}")
    else:
        console.print_warning(f"Config already exists: {path} (use --force to overwrite)")


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration."""
    console = create_console()
    path = _config_path(ctx)

    try:
        loaded = load_config(path)
    except (FileNotFoundError, ValidationError) as e:
        console.print_error(str(e))
        ctx.exit(1)

    console.print_config_summary(str(path), loaded.ledger.url, loaded.blob_store.backend.value)
    click.echo(yaml.dump(loaded.model_dump(mode="json"), default_flow_style=False, sort_keys=False))


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate the config file."""
    console = create_console()
    path = _config_path(ctx)

    valid, errors = validate_config_file(path)
    if valid:
        console.print_success(f"Configuration is valid: {path}")
        return

    console.print_error(f"Configuration is invalid: {path}")
    for error in errors:
        console.print(f"  [red]•[/red] {error}")
    ctx.exit(1)


if __name__ == "__main__":
    cli()
