"""Persistence backends for the local record store.

Swap the SQL backend for another storage engine by implementing this
interface. Backends deal in plain JSON-compatible dicts keyed by string;
record models and table layout live in the store above them.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Any

from app.errors import PersistenceError

Payload = dict[str, Any]


class PersistenceBackend(ABC):
    """Contract that any record-store backend must satisfy."""

    @abstractmethod
    async def read_version(self) -> int:
        """Return the persisted schema version (0 for a fresh store)."""

    @abstractmethod
    async def write_version(self, version: int) -> None:
        """Record that the store now matches ``version``."""

    @abstractmethod
    async def create_tables(self, names: Iterable[str]) -> None:
        """Create tables that do not exist yet."""

    @abstractmethod
    async def drop_tables(self, names: Iterable[str]) -> None:
        """Drop tables and their rows. Missing tables are ignored."""

    @abstractmethod
    async def get(self, table: str, key: str) -> Payload | None:
        """Return one payload or None."""

    @abstractmethod
    async def put_many(self, table: str, items: Sequence[tuple[str, Payload]]) -> None:
        """Upsert payloads wholesale, last write wins."""

    @abstractmethod
    async def delete_many(self, table: str, keys: Iterable[str]) -> None:
        """Delete rows by key. Absent keys are ignored."""

    @abstractmethod
    async def values(self, table: str) -> list[Payload]:
        """Return every payload in the table, in no particular order."""

    @abstractmethod
    async def keys(self, table: str) -> list[str]:
        """Return every key in the table."""

    @abstractmethod
    async def replace(self, table: str, items: Sequence[tuple[str, Payload]]) -> list[str]:
        """Atomically make ``items`` the full contents of the table.

        Returns the keys that were deleted.
        """

    async def close(self) -> None:
        """Release any held resources."""


class MemoryBackend(PersistenceBackend):
    """Process-local backend. Nothing survives a restart."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, Payload]] = {}
        self._version = 0

    def _table(self, name: str) -> dict[str, Payload]:
        try:
            return self._tables[name]
        except KeyError:
            raise PersistenceError(f"Table '{name}' does not exist") from None

    async def read_version(self) -> int:
        return self._version

    async def write_version(self, version: int) -> None:
        self._version = version

    async def create_tables(self, names: Iterable[str]) -> None:
        for name in names:
            self._tables.setdefault(name, {})

    async def drop_tables(self, names: Iterable[str]) -> None:
        for name in names:
            self._tables.pop(name, None)

    async def get(self, table: str, key: str) -> Payload | None:
        payload = self._table(table).get(key)
        return copy.deepcopy(payload) if payload is not None else None

    async def put_many(self, table: str, items: Sequence[tuple[str, Payload]]) -> None:
        rows = self._table(table)
        for key, payload in items:
            rows[key] = copy.deepcopy(payload)

    async def delete_many(self, table: str, keys: Iterable[str]) -> None:
        rows = self._table(table)
        for key in keys:
            rows.pop(key, None)

    async def values(self, table: str) -> list[Payload]:
        return [copy.deepcopy(p) for p in self._table(table).values()]

    async def keys(self, table: str) -> list[str]:
        return list(self._table(table))

    async def replace(self, table: str, items: Sequence[tuple[str, Payload]]) -> list[str]:
        rows = self._table(table)
        next_keys = {key for key, _ in items}
        stale = [key for key in rows if key not in next_keys]
        # No await between here and the end, so other tasks never see a half-applied set.
        for key in stale:
            del rows[key]
        for key, payload in items:
            rows[key] = copy.deepcopy(payload)
        return stale
