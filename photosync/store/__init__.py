# PhotoSync Store Module
# Record repository contract, SQLAlchemy ledger and retry policy

from photosync.store.repository import CLEARABLE_FIELDS, RecordRepository, resolve_clear_field
from photosync.store.retry import RetryPolicy
from photosync.store.sql import PhotoRow, SqlRecordRepository, create_ledger_engine

__all__ = [
    "RecordRepository",
    "CLEARABLE_FIELDS",
    "resolve_clear_field",
    "SqlRecordRepository",
    "PhotoRow",
    "create_ledger_engine",
    "RetryPolicy",
]
