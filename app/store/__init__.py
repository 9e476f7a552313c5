from app.store.backend import MemoryBackend, PersistenceBackend
from app.store.record_store import ABSENT, Absent, LocalRecordStore, RecordTable, best_effort, try_persist
from app.store.schema import CURRENT_VERSION, SCHEMA_VERSIONS, SchemaVersion
from app.store.sql_backend import SqlBackend

__all__ = [
    "ABSENT",
    "Absent",
    "CURRENT_VERSION",
    "LocalRecordStore",
    "MemoryBackend",
    "PersistenceBackend",
    "RecordTable",
    "SCHEMA_VERSIONS",
    "SchemaVersion",
    "SqlBackend",
    "best_effort",
    "try_persist",
]
