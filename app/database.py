"""SQLAlchemy declarative base + record-store wiring for the FastAPI app."""

from fastapi import Request
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings


class Base(DeclarativeBase):
    pass


def build_store(config: Settings):
    """Create an unopened record store on the configured backend."""
    from app.store import LocalRecordStore, MemoryBackend, SqlBackend

    if config.storage_backend == "memory":
        backend = MemoryBackend()
    elif config.storage_backend == "sql":
        backend = SqlBackend(config.database_url, echo=config.sql_echo)
    else:
        raise ValueError(f"Unknown storage backend: {config.storage_backend!r}")
    return LocalRecordStore(backend)


def get_store(request: Request):
    return request.app.state.store
