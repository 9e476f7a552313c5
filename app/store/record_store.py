"""Versioned keyed-record store over the ``tokens``, ``settings`` and ``projects`` tables.

Opening the store applies pending schema versions in order. Table operations
issued while the store is opening wait for it; operations issued before
``open()`` was called, or after it failed, raise ``StoreNotReady``.

Operations against one table run in the order they were issued. Operations
against different tables are not ordered relative to each other, and the
last write to a key wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel

from app.errors import PersistenceError, StoreNotReady
from app.schemas.records import ProjectRecord, SettingRecord, TokenRecord
from app.store.backend import PersistenceBackend
from app.store.schema import SCHEMA_VERSIONS, SchemaVersion, check_versions, layout_at

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)
T = TypeVar("T")


class Absent:
    """Returned by ``RecordTable.get`` for a key that was never written."""

    _instance: Absent | None = None

    def __new__(cls) -> Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent()


class RecordTable(Generic[R]):
    """One logical table bound to a record model."""

    def __init__(self, store: LocalRecordStore, name: str, model: type[R], key_field: str) -> None:
        if key_field not in model.model_fields:
            raise ValueError(f"{model.__name__} has no primary key field '{key_field}'")
        self._store = store
        self._backend = store.backend
        self.name = name
        self.model = model
        self.key_field = key_field
        self._lock = asyncio.Lock()

    def key_of(self, record: R) -> str:
        return str(getattr(record, self.key_field))

    def _item(self, record: R) -> tuple[str, dict]:
        return self.key_of(record), record.model_dump(mode="json")

    async def _run(self, operation: Callable[..., Awaitable[T]], *args) -> T:
        # The lock is FIFO, so one caller's sequential operations keep their order.
        async with self._lock:
            await self._store.wait_ready()
            return await operation(*args)

    async def get(self, key: str) -> R | Absent:
        payload = await self._run(self._backend.get, self.name, key)
        if payload is None:
            return ABSENT
        return self.model.model_validate(payload)

    async def put(self, record: R) -> None:
        await self._run(self._backend.put_many, self.name, [self._item(record)])

    async def bulk_put(self, records: Sequence[R]) -> None:
        await self._run(self._backend.put_many, self.name, [self._item(r) for r in records])

    async def delete(self, key: str) -> None:
        await self._run(self._backend.delete_many, self.name, [key])

    async def bulk_delete(self, keys: Iterable[str]) -> None:
        await self._run(self._backend.delete_many, self.name, list(keys))

    async def list(self) -> list[R]:
        payloads = await self._run(self._backend.values, self.name)
        return [self.model.model_validate(p) for p in payloads]

    async def keys(self) -> list[str]:
        return await self._run(self._backend.keys, self.name)

    async def clear(self) -> None:
        await self._run(self._backend.replace, self.name, [])

    async def reconcile(self, next_set: Sequence[R]) -> list[str]:
        """Make ``next_set`` the full table contents in one atomic step.

        Keys missing from ``next_set`` are deleted, the rest are upserted.
        Returns the deleted keys.
        """
        items = [self._item(r) for r in next_set]
        stale = await self._run(self._backend.replace, self.name, items)
        if stale:
            logger.debug("Reconcile of %s removed %d stale record(s)", self.name, len(stale))
        return stale


class LocalRecordStore:
    def __init__(
        self,
        backend: PersistenceBackend,
        versions: Sequence[SchemaVersion] = SCHEMA_VERSIONS,
    ) -> None:
        check_versions(versions)
        self.backend = backend
        self._versions = tuple(versions)
        self._opening: asyncio.Task[int] | None = None
        self._version = 0
        self._layout: dict[str, str] = {}
        self._tables: dict[str, RecordTable] = {}

    # ── Lifecycle ────────────────────────────────────────────────────

    @property
    def version(self) -> int:
        return self._version

    @property
    def latest_version(self) -> int:
        return self._versions[-1].number

    @property
    def ready(self) -> bool:
        return (
            self._opening is not None
            and self._opening.done()
            and not self._opening.cancelled()
            and self._opening.exception() is None
        )

    async def open(self) -> int:
        """Apply pending schema versions and mark the store ready.

        Concurrent callers share one migration run.
        """
        if self._opening is None:
            self._opening = asyncio.ensure_future(self._migrate())
        return await asyncio.shield(self._opening)

    async def wait_ready(self) -> None:
        if self._opening is None:
            raise StoreNotReady("Record store has not been opened")
        try:
            await asyncio.shield(self._opening)
        except PersistenceError as exc:
            raise StoreNotReady(f"Record store failed to open: {exc}") from exc

    async def close(self) -> None:
        self._opening = None
        self._tables.clear()
        await self.backend.close()

    async def _migrate(self) -> int:
        current = await self.backend.read_version()
        latest = self.latest_version
        if current > latest:
            raise PersistenceError(
                f"Stored schema version {current} is newer than supported version {latest}"
            )

        for version in self._versions:
            if version.number <= current:
                continue
            before = layout_at(self._versions, current)
            after = layout_at(self._versions, version.number)
            created = [name for name in after if name not in before]
            dropped = [name for name in before if name not in after]
            logger.info(
                "Migrating record store v%d -> v%d (create=%s, drop=%s)",
                current, version.number, created, dropped,
            )
            await self.backend.create_tables(created)
            if version.upgrade is not None:
                await version.upgrade(self.backend)
            await self.backend.drop_tables(dropped)
            await self.backend.write_version(version.number)
            current = version.number

        self._version = current
        self._layout = layout_at(self._versions, current)
        logger.info("Record store ready at schema v%d (%s)", current, ", ".join(self._layout))
        return current

    # ── Tables ───────────────────────────────────────────────────────

    def table(self, name: str, model: type[R]) -> RecordTable[R]:
        existing = self._tables.get(name)
        if existing is not None:
            return existing
        layout = self._layout or layout_at(self._versions, self.latest_version)
        if name not in layout:
            raise ValueError(f"Table '{name}' is not part of the store layout")
        table = RecordTable(self, name, model, layout[name])
        self._tables[name] = table
        return table

    @property
    def tokens(self) -> RecordTable[TokenRecord]:
        return self.table("tokens", TokenRecord)

    @property
    def settings(self) -> RecordTable[SettingRecord]:
        return self.table("settings", SettingRecord)

    @property
    def projects(self) -> RecordTable[ProjectRecord]:
        return self.table("projects", ProjectRecord)


async def best_effort(operation: Awaitable[T], default: T, action: str) -> T:
    """Await a persistence call, logging and returning ``default`` if storage fails.

    Only for request boundaries where losing a read or write is acceptable.
    """
    try:
        return await operation
    except PersistenceError as exc:
        logger.warning("Failed to %s: %s", action, exc)
        return default


async def try_persist(operation: Awaitable[object], action: str) -> bool:
    """Await a persistence write; False (and a warning) if storage failed."""
    try:
        await operation
    except PersistenceError as exc:
        logger.warning("Failed to %s: %s", action, exc)
        return False
    return True
