"""Record storage backends."""

from .record_store import (
    InMemoryRecordStore,
    JsonFileRecordStore,
    RecordStore,
    build_record_store,
)

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    "build_record_store",
]
