# PhotoSync Configuration Schema
# Pydantic models for YAML configuration validation

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class BlobBackend(str, Enum):
    """Blob store implementation."""

    LOCAL = "local"
    S3 = "s3"


def _expand_optional(v: str | None) -> str | None:
    if not v:
        return v
    return str(Path(v).expanduser())


class LedgerConfig(BaseModel):
    """Relational record store settings."""

    url: str = Field(default="sqlite:///~/.local/share/photosync/ledger.db", description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @field_validator("url")
    @classmethod
    def expand_sqlite_path(cls, v: str) -> str:
        """Expand ~ in sqlite file URLs."""
        prefix = "sqlite:///"
        if v.startswith(prefix) and v[len(prefix) :].startswith("~"):
            return prefix + str(Path(v[len(prefix) :]).expanduser())
        return v


class BlobStoreConfig(BaseModel):
    """Remote blob store settings."""

    backend: BlobBackend = Field(default=BlobBackend.LOCAL, description="Blob store backend")
    container: str = Field(default="photos", description="Container (local directory name or S3 bucket)")
    root: str = Field(default="~/.local/share/photosync/blobs", description="Root directory for the local backend")
    endpoint_url: str | None = Field(default=None, description="Custom S3 endpoint URL")
    region: str | None = Field(default=None, description="S3 region name")

    @field_validator("root")
    @classmethod
    def expand_root(cls, v: str) -> str:
        """Expand ~ in root path."""
        return str(Path(v).expanduser())


class PhotoSettings(BaseModel):
    """Folders and behaviour of the transfer pipelines."""

    import_folder: str = Field(default="", description="Default folder for import")
    export_folder: str = Field(default="", description="Default folder for export")
    imported_archive_folder: str = Field(default="", description="Where imported files are moved")
    enable_auto_archive: bool = Field(default=True, description="Archive files after import")
    enable_duplicate_check: bool = Field(default=True, description="Skip files whose hash is already stored")
    use_incremental_export: bool = Field(default=True, description="Allow incremental export")
    export_file_name_format: str = Field(default="{Code}.jpg", description="Export file name template")
    track_file_hash: bool = Field(default=True, description="Compute content hashes on import")
    max_parallel_operations: int = Field(default=4, ge=1, description="Archive worker pool size")

    @field_validator("import_folder", "export_folder", "imported_archive_folder")
    @classmethod
    def expand_folders(cls, v: str) -> str:
        """Expand ~ in folders."""
        return _expand_optional(v) or ""


class RetryConfig(BaseModel):
    """Exponential backoff for transient store errors."""

    max_attempts: int = Field(default=3, ge=1, description="Total attempts including the first")
    base_delay: float = Field(default=0.5, ge=0, description="Delay before the first retry (seconds)")
    max_delay: float = Field(default=10.0, ge=0, description="Upper bound for a single delay (seconds)")
    factor: float = Field(default=2.0, ge=1, description="Backoff multiplier")


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_log_file(cls, v: str | None) -> str | None:
        """Expand ~ in log file path."""
        return _expand_optional(v)

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Upper-case and check the level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class PhotoSyncConfig(BaseModel):
    """Root configuration model for PhotoSync."""

    ledger: LedgerConfig = Field(default_factory=LedgerConfig, description="Ledger settings")
    blob_store: BlobStoreConfig = Field(default_factory=BlobStoreConfig, description="Blob store settings")
    photos: PhotoSettings = Field(default_factory=PhotoSettings, description="Pipeline settings")
    retry: RetryConfig = Field(default_factory=RetryConfig, description="Retry policy")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")
