# PhotoSync File Store
# Local folder access: listing, atomic writes, archiving and folder stats

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from photosync.errors import ValidationError
from photosync.logger import get_logger
from photosync.utils.hashing import content_hash
from photosync.utils.paths import atomic_write, ensure_dir, expand_path, unique_target_path

IMAGE_EXTENSIONS = (".jpg", ".jpeg")


@dataclass
class FolderInfo:
    """Statistics about a photo folder."""

    path: Path
    exists: bool
    total_files: int = 0
    image_files: int = 0
    total_bytes: int = 0
    last_modified: Optional[datetime] = None


@dataclass
class ArchiveOutcome:
    """Result of archiving one file."""

    source: Path
    target: Optional[Path] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.target is not None and self.error is None


def is_image_file(path: Path) -> bool:
    """Check if a path names a JPG file (case-insensitive extension)."""
    return path.suffix.lower() in IMAGE_EXTENSIONS


class FileStore:
    """Filesystem operations used by the import and export pipelines."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger(__name__)

    def list_images(self, directory: str | Path) -> list[Path]:
        """
        List JPG files directly inside a directory.

        Args:
            directory: Folder to scan (not recursive).

        Returns:
            Files sorted by name.
        """
        folder = expand_path(directory)
        if not folder.is_dir():
            return []
        return sorted((p for p in folder.iterdir() if p.is_file() and is_image_file(p)), key=lambda p: p.name)

    def read_all(self, path: Path) -> bytes:
        """Read a file's bytes."""
        return path.read_bytes()

    def write_all(self, directory: str | Path, file_name: str, data: bytes) -> Path:
        """
        Atomically write a file, replacing any existing one.

        Args:
            directory: Target folder (created if missing).
            file_name: Target file name.
            data: Content to write.

        Returns:
            Path of the written file.
        """
        target = expand_path(directory) / file_name
        atomic_write(target, data)
        return target

    def hash(self, data: bytes) -> str:
        """SHA-256 hex digest of a payload; empty string for empty input."""
        return content_hash(data)

    def archive(self, path: Path, archive_dir: str | Path, *, now: Optional[datetime] = None) -> Path:
        """
        Move a file into the archive folder without overwriting.

        A name collision yields ``<stem>_<yyyyMMdd_HHmmss><ext>``.

        Args:
            path: File to move.
            archive_dir: Archive folder (created if missing).
            now: Timestamp for the collision suffix.

        Returns:
            New location of the file.
        """
        folder = ensure_dir(expand_path(archive_dir))
        target = unique_target_path(folder, path.name, now=now)
        shutil.move(str(path), str(target))
        self.logger.debug("Archived %s -> %s", path.name, target)
        return target

    def archive_many(self, paths: list[Path], archive_dir: str | Path, max_parallel: int = 4) -> list[ArchiveOutcome]:
        """
        Archive files with a bounded worker pool.

        Failures are logged and reported per file, never raised.

        Args:
            paths: Files to move.
            archive_dir: Archive folder.
            max_parallel: Maximum concurrent moves.

        Returns:
            One outcome per input path, in input order.
        """
        if not paths:
            return []

        try:
            ensure_dir(expand_path(archive_dir))
        except OSError as e:
            self.logger.warning("Cannot use archive folder %s: %s", archive_dir, e)
            return [ArchiveOutcome(source=path, error=str(e)) for path in paths]

        outcomes: dict[Path, ArchiveOutcome] = {}

        with ThreadPoolExecutor(max_workers=max(1, max_parallel)) as executor:
            futures = {executor.submit(self.archive, path, archive_dir): path for path in paths}
            for future in as_completed(futures):
                path = futures[future]
                try:
                    outcomes[path] = ArchiveOutcome(source=path, target=future.result())
                except OSError as e:
                    self.logger.warning("Failed to archive %s: %s", path.name, e)
                    outcomes[path] = ArchiveOutcome(source=path, error=str(e))

        return [outcomes[path] for path in paths]

    def validate_folder(self, directory: str | Path | None, *, create: bool = False) -> Path:
        """
        Check that a folder is configured and usable.

        Args:
            directory: Folder path; empty means not configured.
            create: Create the folder when missing.

        Returns:
            The expanded folder path.

        Raises:
            ValidationError: If the folder is not configured, missing or not
                a directory.
        """
        if not directory or not str(directory).strip():
            raise ValidationError("Folder is not configured")

        folder = expand_path(directory)
        if create:
            try:
                ensure_dir(folder)
            except OSError as e:
                raise ValidationError(f"Cannot create folder {folder}: {e}") from e
        if not folder.exists():
            raise ValidationError(f"Folder does not exist: {folder}")
        if not folder.is_dir():
            raise ValidationError(f"Not a directory: {folder}")
        return folder

    def folder_info(self, directory: str | Path) -> FolderInfo:
        """Collect file counts, total size and last modification of a folder."""
        folder = expand_path(directory)
        if not folder.is_dir():
            return FolderInfo(path=folder, exists=False)

        info = FolderInfo(path=folder, exists=True)
        latest = 0.0
        for entry in folder.iterdir():
            if not entry.is_file():
                continue
            stat = entry.stat()
            info.total_files += 1
            info.total_bytes += stat.st_size
            latest = max(latest, stat.st_mtime)
            if is_image_file(entry):
                info.image_files += 1

        if latest:
            info.last_modified = datetime.fromtimestamp(latest)
        return info
