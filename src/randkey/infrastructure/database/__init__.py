"""SQLAlchemy adapters: record store, insert-time retry and column types."""
from randkey.infrastructure.database.column_types import key_column_type
from randkey.infrastructure.database.key_allocation import (
    ainsert_with_random_key,
    insert_with_random_key,
)
from randkey.infrastructure.database.record_store import (
    AsyncRecordStore,
    AsyncSQLAlchemyRecordStore,
    RecordStore,
    SQLAlchemyRecordStore,
)

__all__ = [
    "AsyncRecordStore",
    "AsyncSQLAlchemyRecordStore",
    "RecordStore",
    "SQLAlchemyRecordStore",
    "ainsert_with_random_key",
    "insert_with_random_key",
    "key_column_type",
]
