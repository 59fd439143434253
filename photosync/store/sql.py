# PhotoSync SQL Ledger
# SQLAlchemy implementation of the record repository

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import fields
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    LargeBinary,
    String,
    case,
    create_engine,
    func,
    or_,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from photosync.errors import PermanentStoreError, StoreError, TransientStoreError
from photosync.logger import get_logger
from photosync.store.repository import RecordRepository, resolve_clear_field
from photosync.sync import rules
from photosync.sync.record import Clock, PhotoRecord, StatusSnapshot, utc_now

logger = get_logger(__name__)

_RECORD_FIELDS = [f.name for f in fields(PhotoRecord)]


class Base(DeclarativeBase):
    pass


class PhotoRow(Base):
    """One photo in the ledger."""

    __tablename__ = "photos"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    image_data: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)
    blob_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    content_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    byte_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    record_modified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    content_modified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    imported_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    exported_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    blob_uploaded_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    blob_sync_pending: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source_descriptor: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    source_file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_photos_exported_at", "exported_at"),
        Index("ix_photos_imported_at", "imported_at"),
        Index("ix_photos_content_hash", "content_hash"),
        Index("ix_photos_blob_sync_pending", "blob_sync_pending"),
    )


def _to_record(row: PhotoRow) -> PhotoRecord:
    return PhotoRecord(**{name: getattr(row, name) for name in _RECORD_FIELDS})


def _write(row: PhotoRow, record: PhotoRecord) -> None:
    for name in _RECORD_FIELDS:
        if name != "code":
            setattr(row, name, getattr(record, name))


def _translate(error: SQLAlchemyError) -> StoreError:
    """Map a SQLAlchemy error onto the store error taxonomy."""
    if isinstance(error, IntegrityError):
        return PermanentStoreError(f"Constraint violation: {error.orig}")
    if isinstance(error, (OperationalError, DisconnectionError, PoolTimeoutError)):
        return TransientStoreError(str(error))
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return TransientStoreError(str(error))
    return PermanentStoreError(str(error))


def create_ledger_engine(url: str, *, echo: bool = False) -> Engine:
    """
    Create an engine for the ledger.

    In-memory SQLite gets a single shared connection so every session sees
    the same database. File-based SQLite gets its parent directory created.
    """
    connect_args = {}
    kwargs = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        database = url.split(":///", 1)[1] if ":///" in url else ""
        if database in ("", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(database).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(url, echo=echo, connect_args=connect_args, pool_pre_ping=True, **kwargs)


class SqlRecordRepository(RecordRepository):
    """
    Record repository backed by a single ``photos`` table.

    Every operation runs in its own session; mutations commit as one
    transaction so a record is either fully updated or untouched.
    """

    def __init__(self, engine: Engine, *, clock: Clock = utc_now):
        """
        Initialize repository.

        Args:
            engine: SQLAlchemy engine for the ledger.
            clock: Source of "now" for tracking timestamps.
        """
        self.engine = engine
        self.clock = clock
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False, clock: Clock = utc_now) -> "SqlRecordRepository":
        """Create a repository for a database URL."""
        return cls(create_ledger_engine(url, echo=echo), clock=clock)

    def create_schema(self) -> None:
        """Create the ``photos`` table and indexes if missing."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise _translate(e) from e

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise _translate(e) from e
        finally:
            session.close()

    def _select(self, *criteria) -> list[PhotoRecord]:
        stmt = select(PhotoRow).where(*criteria).order_by(PhotoRow.created_at, PhotoRow.code)
        with self._session() as session:
            return [_to_record(row) for row in session.scalars(stmt)]

    def _mutate(self, code: str, change) -> bool:
        """Load a row, apply a rule to its record and write the result back."""
        with self._session() as session:
            row = session.get(PhotoRow, code)
            if row is None:
                logger.warning("No record found for code %s", code)
                return False
            _write(row, change(_to_record(row)))
            return True

    def test_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Ledger connection failed: %s", e)
            return False

    def upsert(self, record: PhotoRecord) -> bool:
        now = self.clock()
        with self._session() as session:
            row = session.get(PhotoRow, record.code)
            existing = _to_record(row) if row is not None else None
            merged = rules.merge_upsert(existing, record, now)
            if row is None:
                row = PhotoRow(code=record.code)
                session.add(row)
            _write(row, merged)
        return True

    def find_by_code(self, code: str) -> Optional[PhotoRecord]:
        with self._session() as session:
            row = session.get(PhotoRow, code)
            return _to_record(row) if row is not None else None

    def find_all(self) -> Sequence[PhotoRecord]:
        return self._select()

    def find_missing_blob_path(self) -> Sequence[PhotoRecord]:
        return self._select(PhotoRow.image_data.is_not(None), PhotoRow.blob_path.is_(None))

    def find_missing_image_data(self) -> Sequence[PhotoRecord]:
        return self._select(PhotoRow.blob_path.is_not(None), PhotoRow.image_data.is_(None))

    def find_needing_export(self) -> Sequence[PhotoRecord]:
        return self._select(
            or_(
                PhotoRow.exported_at.is_(None),
                PhotoRow.record_modified_at > PhotoRow.exported_at,
                PhotoRow.content_modified_at > PhotoRow.exported_at,
            )
        )

    def find_needing_blob_sync(self) -> Sequence[PhotoRecord]:
        return self._select(PhotoRow.blob_sync_pending.is_(True), PhotoRow.image_data.is_not(None))

    def find_duplicate_by_hash(self, content_hash: str, exclude_code: Optional[str] = None) -> Optional[PhotoRecord]:
        if not content_hash:
            return None

        stmt = select(PhotoRow).where(PhotoRow.content_hash == content_hash)
        if exclude_code is not None:
            stmt = stmt.where(PhotoRow.code != exclude_code)
        stmt = stmt.order_by(PhotoRow.created_at, PhotoRow.code).limit(1)

        with self._session() as session:
            row = session.scalars(stmt).first()
            return _to_record(row) if row is not None else None

    def update_blob_path(self, code: str, blob_path: str) -> bool:
        now = self.clock()
        return self._mutate(code, lambda record: rules.after_upload(record, blob_path, now))

    def update_image_data(self, code: str, data: bytes) -> bool:
        now = self.clock()
        return self._mutate(code, lambda record: rules.after_content_update(record, data, now))

    def update_export_tracking(self, code: str, exported_at: datetime) -> bool:
        return self._mutate(code, lambda record: rules.after_export(record, exported_at))

    def update_import_tracking(
        self,
        code: str,
        imported_at: datetime,
        source_descriptor: str,
        source_file_name: str,
        content_hash: Optional[str],
        size: int,
    ) -> bool:
        return self._mutate(
            code,
            lambda record: rules.after_import(
                record,
                imported_at,
                source_descriptor=source_descriptor,
                source_file_name=source_file_name,
                file_hash=content_hash,
                size=size,
            ),
        )

    def clear_field(self, field_name: str) -> int:
        column = resolve_clear_field(field_name)
        now = self.clock()

        if column == "image_data":
            stmt = (
                update(PhotoRow)
                .where(PhotoRow.image_data.is_not(None))
                .values(image_data=None, record_modified_at=now)
            )
        else:
            stmt = (
                update(PhotoRow)
                .where(PhotoRow.blob_path.is_not(None))
                .values(blob_path=None, blob_sync_pending=False, record_modified_at=now)
            )

        with self._session() as session:
            result = session.execute(stmt.execution_options(synchronize_session=False))
            return result.rowcount or 0

    def summary_stats(self) -> StatusSnapshot:
        stale = (
            PhotoRow.exported_at.is_not(None)
            & or_(
                PhotoRow.record_modified_at > PhotoRow.exported_at,
                PhotoRow.content_modified_at > PhotoRow.exported_at,
            )
        )
        stmt = select(
            func.count(),
            func.count(case((PhotoRow.image_data.is_not(None), 1))),
            func.count(case((PhotoRow.blob_path.is_not(None), 1))),
            func.count(case((PhotoRow.exported_at.is_(None), 1))),
            func.count(case((stale, 1))),
            func.count(case((PhotoRow.blob_sync_pending.is_(True), 1))),
            func.count(PhotoRow.content_hash),
            func.count(PhotoRow.content_hash.distinct()),
            func.min(PhotoRow.imported_at),
            func.max(PhotoRow.imported_at),
            func.min(PhotoRow.exported_at),
            func.max(PhotoRow.exported_at),
            func.min(PhotoRow.blob_uploaded_at),
            func.max(PhotoRow.blob_uploaded_at),
        ).select_from(PhotoRow)

        with self._session() as session:
            row = session.execute(stmt).one()

        return StatusSnapshot(
            total=row[0],
            with_data=row[1],
            in_blob=row[2],
            never_exported=row[3],
            stale_exports=row[4],
            pending_blob_sync=row[5],
            with_hash=row[6],
            unique_hashes=row[7],
            first_import=row[8],
            last_import=row[9],
            first_export=row[10],
            last_export=row[11],
            first_blob_upload=row[12],
            last_blob_upload=row[13],
        )

    def count(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(PhotoRow)) or 0
