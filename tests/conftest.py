# PhotoSync Test Fixtures
# Pytest fixtures for PhotoSync tests

import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import yaml

from photosync.blobstore.local import LocalBlobStore
from photosync.config.schema import PhotoSettings
from photosync.errors import PermanentStoreError, TransientStoreError
from photosync.files import FileStore
from photosync.store.sql import SqlRecordRepository

MUTATING_METHODS = (
    "upsert",
    "update_blob_path",
    "update_image_data",
    "update_export_tracking",
    "update_import_tracking",
    "clear_field",
)


class FixedClock:
    """Controllable clock returning naive UTC datetimes."""

    def __init__(self, start: datetime = datetime(2024, 1, 15, 10, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class SpyRepository(SqlRecordRepository):
    """SQL repository that records every mutating call."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.mutations: list[str] = []

    def upsert(self, record):
        self.mutations.append("upsert")
        return super().upsert(record)

    def update_blob_path(self, code, blob_path):
        self.mutations.append("update_blob_path")
        return super().update_blob_path(code, blob_path)

    def update_image_data(self, code, data):
        self.mutations.append("update_image_data")
        return super().update_image_data(code, data)

    def update_export_tracking(self, code, exported_at):
        self.mutations.append("update_export_tracking")
        return super().update_export_tracking(code, exported_at)

    def update_import_tracking(self, code, *args, **kwargs):
        self.mutations.append("update_import_tracking")
        return super().update_import_tracking(code, *args, **kwargs)

    def clear_field(self, field_name):
        self.mutations.append("clear_field")
        return super().clear_field(field_name)


class SpyBlobStore(LocalBlobStore):
    """
    Local blob store that records writes and can fail chosen codes.

    ``fail_codes`` are always rejected. ``flaky`` maps a code to the number
    of uploads that time out before one goes through.
    """

    def __init__(
        self,
        root: Path,
        *,
        fail_codes: tuple[str, ...] = (),
        flaky: dict[str, int] | None = None,
        reachable: bool = True,
    ):
        super().__init__(root)
        self.fail_codes = set(fail_codes)
        self.flaky = dict(flaky or {})
        self.reachable = reachable
        self.attempts: list[str] = []
        self.uploads: list[str] = []
        self.deletes: list[str] = []

    def upload(self, blob_id, data):
        self.attempts.append(blob_id)
        if blob_id in self.fail_codes:
            raise PermanentStoreError(f"upload rejected for {blob_id}")
        if self.flaky.get(blob_id, 0) > 0:
            self.flaky[blob_id] -= 1
            raise TransientStoreError(f"upload timed out for {blob_id}")
        self.uploads.append(blob_id)
        return super().upload(blob_id, data)

    def delete(self, path):
        self.deletes.append(path)
        return super().delete(path)

    def test_connection(self):
        return self.reachable and super().test_connection()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at 2024-01-15 10:00 until advanced."""
    return FixedClock()


@pytest.fixture
def repository(clock: FixedClock) -> Generator[SpyRepository, None, None]:
    """In-memory SQLite ledger with schema."""
    repo = SpyRepository.from_url("sqlite://", clock=clock)
    repo.create_schema()
    yield repo
    repo.engine.dispose()


@pytest.fixture
def blob_store(temp_dir: Path) -> SpyBlobStore:
    """Local blob store under the temp directory."""
    return SpyBlobStore(temp_dir / "blobs")


@pytest.fixture
def make_blob_store(temp_dir: Path) -> Callable[..., SpyBlobStore]:
    """Build a spy blob store with chosen failures."""

    def _make(**kwargs) -> SpyBlobStore:
        return SpyBlobStore(temp_dir / "blobs", **kwargs)

    return _make


@pytest.fixture
def files() -> FileStore:
    """File store."""
    return FileStore()


@pytest.fixture
def folders(temp_dir: Path) -> dict[str, Path]:
    """Import, export and archive folders (only the import folder exists)."""
    inbox = temp_dir / "inbox"
    inbox.mkdir()
    return {
        "import": inbox,
        "export": temp_dir / "export",
        "archive": temp_dir / "archive",
    }


@pytest.fixture
def settings(folders: dict[str, Path]) -> PhotoSettings:
    """Pipeline settings pointing at the temp folders."""
    return PhotoSettings(
        import_folder=str(folders["import"]),
        export_folder=str(folders["export"]),
        imported_archive_folder=str(folders["archive"]),
        max_parallel_operations=2,
    )


@pytest.fixture
def write_photo(folders: dict[str, Path]) -> Callable[..., Path]:
    """Write a fake JPG into the import folder."""

    def _write(name: str, data: bytes | None = None) -> Path:
        path = folders["import"] / name
        path.write_bytes(data if data is not None else b"\xff\xd8\xff" + name.encode("utf-8"))
        return path

    return _write


@pytest.fixture
def config_file(temp_dir: Path, folders: dict[str, Path]) -> Path:
    """Config file with a file-based SQLite ledger and a local blob store."""
    config = {
        "ledger": {"url": f"sqlite:///{temp_dir / 'ledger.db'}"},
        "blob_store": {"backend": "local", "root": str(temp_dir / "blobs")},
        "photos": {
            "import_folder": str(folders["import"]),
            "export_folder": str(folders["export"]),
            "imported_archive_folder": str(folders["archive"]),
        },
        "retry": {"max_attempts": 1, "base_delay": 0},
        "output": {"colored": False, "log_file": None, "log_level": "WARNING"},
    }
    path = temp_dir / "config.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False)
    return path
