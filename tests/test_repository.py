# PhotoSync Repository Tests
# Tests for the SQLAlchemy ledger

from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from photosync.errors import InvalidFieldError, PermanentStoreError, TransientStoreError
from photosync.store.repository import resolve_clear_field
from photosync.store.sql import SqlRecordRepository, _translate
from photosync.sync import rules
from photosync.sync.record import PhotoRecord
from photosync.utils.hashing import content_hash


def add(repository, code: str, data: bytes | None = b"data", **kwargs) -> PhotoRecord:
    record = PhotoRecord(
        code=code,
        image_data=data,
        content_hash=content_hash(data) if data else None,
        created_at=repository.clock(),
        **kwargs,
    )
    repository.upsert(record)
    return repository.find_by_code(code)


class TestUpsert:
    """Tests for upsert and lookups."""

    def test_insert_and_find(self, repository, clock):
        stored = add(repository, "P001", b"abc")
        assert stored.image_data == b"abc"
        assert stored.created_at == clock.now
        assert stored.imported_at == clock.now
        assert repository.count() == 1

    def test_created_at_from_repository_clock(self, repository, clock):
        clock.advance(days=3)
        repository.upsert(PhotoRecord(code="P001", image_data=b"abc"))

        stored = repository.find_by_code("P001")
        assert stored.created_at == clock.now
        assert stored.imported_at == clock.now

    def test_find_missing_code(self, repository):
        assert repository.find_by_code("nope") is None

    def test_update_merges_non_null_fields(self, repository, clock):
        add(repository, "P001", b"abc", source_file_name="P001.jpg")
        clock.advance(minutes=5)

        repository.upsert(PhotoRecord(code="P001", blob_path="file:///b/photos/P001.jpg"))
        stored = repository.find_by_code("P001")

        assert stored.image_data == b"abc"
        assert stored.source_file_name == "P001.jpg"
        assert stored.blob_path == "file:///b/photos/P001.jpg"
        assert stored.record_modified_at == clock.now
        assert repository.count() == 1

    def test_new_data_on_uploaded_record_sets_pending(self, repository, clock):
        add(repository, "P001", b"abc")
        repository.update_blob_path("P001", "file:///b/photos/P001.jpg")
        clock.advance(minutes=5)

        repository.upsert(PhotoRecord(code="P001", image_data=b"changed"))

        assert repository.find_by_code("P001").blob_sync_pending is True
        assert [r.code for r in repository.find_needing_blob_sync()] == ["P001"]

    def test_find_all_ordered_by_creation(self, repository, clock):
        add(repository, "B")
        clock.advance(seconds=1)
        add(repository, "A")
        assert [r.code for r in repository.find_all()] == ["B", "A"]


class TestCandidateQueries:
    """Tests for the candidate selection queries."""

    def test_missing_blob_path(self, repository):
        add(repository, "LOCAL")
        add(repository, "EMPTY", None)
        add(repository, "REMOTE", None, blob_path="file:///b/photos/REMOTE.jpg")
        assert [r.code for r in repository.find_missing_blob_path()] == ["LOCAL"]

    def test_missing_image_data(self, repository):
        add(repository, "LOCAL")
        add(repository, "REMOTE", None, blob_path="file:///b/photos/REMOTE.jpg")
        assert [r.code for r in repository.find_missing_image_data()] == ["REMOTE"]

    def test_needing_export(self, repository, clock):
        add(repository, "P001")
        add(repository, "P002")
        clock.advance(minutes=1)
        repository.update_export_tracking("P001", clock.now)

        assert [r.code for r in repository.find_needing_export()] == ["P002"]

        clock.advance(minutes=1)
        repository.update_image_data("P001", b"new")
        assert {r.code for r in repository.find_needing_export()} == {"P001", "P002"}

    def test_duplicate_by_hash(self, repository):
        add(repository, "P001", b"same")
        digest = content_hash(b"same")

        assert repository.find_duplicate_by_hash(digest).code == "P001"
        assert repository.find_duplicate_by_hash(digest, exclude_code="P001") is None
        assert repository.find_duplicate_by_hash(digest.upper()) is None
        assert repository.find_duplicate_by_hash("") is None

    def test_queries_match_record_rules(self, repository, clock):
        add(repository, "LOCAL")
        add(repository, "REMOTE", None, blob_path="file:///b/REMOTE.jpg")
        add(repository, "SYNCED")
        repository.update_blob_path("SYNCED", "file:///b/SYNCED.jpg")
        add(repository, "DIRTY")
        repository.update_blob_path("DIRTY", "file:///b/DIRTY.jpg")
        clock.advance(minutes=1)
        repository.update_export_tracking("SYNCED", clock.now)
        repository.update_image_data("DIRTY", b"changed")
        records = repository.find_all()

        def codes(found):
            return sorted(r.code for r in found)

        assert codes(repository.find_missing_blob_path()) == codes(filter(rules.needs_initial_upload, records))
        assert codes(repository.find_missing_image_data()) == codes(filter(rules.needs_download, records))
        assert codes(repository.find_needing_export()) == codes(filter(rules.needs_export, records))
        assert codes(repository.find_needing_blob_sync()) == codes(filter(rules.needs_upload, records))
        assert codes(repository.find_needing_blob_sync()) == ["DIRTY"]


class TestTrackingUpdates:
    """Tests for the tracking update operations."""

    def test_update_blob_path(self, repository, clock):
        add(repository, "P001")
        clock.advance(minutes=1)

        assert repository.update_blob_path("P001", "file:///b/photos/P001.jpg") is True
        stored = repository.find_by_code("P001")
        assert stored.blob_uploaded_at == clock.now
        assert stored.blob_sync_pending is False

    def test_update_image_data_dirty_iff_uploaded(self, repository):
        add(repository, "UP")
        add(repository, "LOCAL")
        repository.update_blob_path("UP", "file:///b/photos/UP.jpg")

        repository.update_image_data("UP", b"v2")
        repository.update_image_data("LOCAL", b"v2")

        assert repository.find_by_code("UP").blob_sync_pending is True
        assert repository.find_by_code("LOCAL").blob_sync_pending is False
        assert repository.find_by_code("UP").content_hash == content_hash(b"v2")

    def test_update_unknown_code(self, repository, clock):
        assert repository.update_blob_path("nope", "x") is False
        assert repository.update_export_tracking("nope", clock.now) is False

    def test_update_import_tracking(self, repository, clock):
        add(repository, "P001")
        clock.advance(minutes=1)

        repository.update_import_tracking("P001", clock.now, "FILE:/in/P001.jpg", "P001.jpg", "abc", 4)
        stored = repository.find_by_code("P001")
        assert stored.imported_at == clock.now
        assert stored.content_modified_at == clock.now
        assert stored.source_descriptor == "FILE:/in/P001.jpg"
        assert stored.content_hash == "abc"
        assert stored.byte_size == 4


class TestClearField:
    """Tests for clear_field."""

    def test_clear_image_data(self, repository):
        add(repository, "P001")
        add(repository, "P002")
        add(repository, "P003", None)

        assert repository.clear_field("image_data") == 2
        assert repository.find_missing_blob_path() == []

    def test_clear_blob_path_alias(self, repository):
        add(repository, "P001", blob_path="file:///b/photos/P001.jpg")
        assert repository.clear_field("AzureStoragePath") == 1
        assert repository.find_by_code("P001").blob_path is None

    def test_clear_invalid_field(self, repository):
        with pytest.raises(InvalidFieldError):
            repository.clear_field("code")

    def test_resolve_aliases(self):
        assert resolve_clear_field("ImageData") == "image_data"
        assert resolve_clear_field(" blobpath ") == "blob_path"


class TestSummaryStats:
    """Tests for summary_stats."""

    def test_empty_ledger(self, repository):
        snapshot = repository.summary_stats()
        assert snapshot.total == 0
        assert snapshot.first_import is None

    def test_counts(self, repository, clock):
        start = clock.now
        add(repository, "P001", b"same")
        add(repository, "P002", b"same")
        add(repository, "P003", b"other")
        add(repository, "P004", None, blob_path="file:///b/photos/P004.jpg")
        clock.advance(minutes=1)
        repository.update_export_tracking("P001", clock.now)
        repository.update_blob_path("P003", "file:///b/photos/P003.jpg")
        clock.advance(minutes=1)
        repository.update_image_data("P001", b"changed")
        repository.update_image_data("P003", b"changed too")

        snapshot = repository.summary_stats()

        assert snapshot.total == 4
        assert snapshot.with_data == 3
        assert snapshot.in_blob == 2
        assert snapshot.never_exported == 3
        assert snapshot.stale_exports == 1
        assert snapshot.pending_blob_sync == 1
        assert snapshot.with_hash == 3
        assert snapshot.unique_hashes == 3
        assert snapshot.first_import == start
        assert snapshot.last_export == datetime(2024, 1, 15, 10, 1, 0)


class TestErrorMapping:
    """Tests for SQLAlchemy error translation."""

    def test_operational_is_transient(self):
        error = OperationalError("SELECT 1", {}, Exception("database is locked"))
        assert isinstance(_translate(error), TransientStoreError)

    def test_integrity_is_permanent(self):
        error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        assert isinstance(_translate(error), PermanentStoreError)

    def test_file_database_connects(self, temp_dir):
        repo = SqlRecordRepository.from_url(f"sqlite:///{temp_dir / 'ledger.db'}")
        assert repo.test_connection() is True
        repo.engine.dispose()
