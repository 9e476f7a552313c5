"""SQLAlchemy async backend (SQLite by default).

Every logical table is stored as ``(key, value JSON, updated_at)`` so that
schema versions can add or drop tables without per-entity DDL. The applied
schema version lives in the ``store_meta`` table.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager

from sqlalchemy import JSON, Column, DateTime, MetaData, String, Table, delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base
from app.errors import PersistenceError
from app.models.store_meta import StoreMeta
from app.store.backend import Payload, PersistenceBackend

logger = logging.getLogger(__name__)

_META_ID = 1


class SqlBackend(PersistenceBackend):
    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self._engine = create_async_engine(database_url, echo=echo)
        self._session = async_sessionmaker(self._engine, class_=AsyncSession, expire_on_commit=False)
        self._metadata = MetaData()
        self._tables: dict[str, Table] = {}

    def _record_table(self, name: str) -> Table:
        table = self._tables.get(name)
        if table is None:
            table = Table(
                name,
                self._metadata,
                Column("key", String(255), primary_key=True),
                Column("value", JSON, nullable=False),
                Column("updated_at", DateTime, server_default=func.now(), onupdate=func.now()),
            )
            self._tables[name] = table
        return table

    @asynccontextmanager
    async def _begin(self, action: str) -> AsyncIterator[AsyncConnection]:
        try:
            async with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to {action}: {exc}") from exc

    # ── Schema ───────────────────────────────────────────────────────

    async def read_version(self) -> int:
        async with self._begin("create store metadata") as conn:
            await conn.run_sync(Base.metadata.create_all, tables=[StoreMeta.__table__])
        try:
            async with self._session() as session:
                meta = await session.get(StoreMeta, _META_ID)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to read schema version: {exc}") from exc
        return meta.version if meta else 0

    async def write_version(self, version: int) -> None:
        try:
            async with self._session() as session:
                meta = await session.get(StoreMeta, _META_ID)
                if meta is None:
                    session.add(StoreMeta(id=_META_ID, version=version))
                else:
                    meta.version = version
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to write schema version: {exc}") from exc

    async def create_tables(self, names: Iterable[str]) -> None:
        tables = [self._record_table(name) for name in names]
        if not tables:
            return
        async with self._begin("create tables") as conn:
            for table in tables:
                await conn.run_sync(table.create, checkfirst=True)
                logger.debug("Created table %s", table.name)

    async def drop_tables(self, names: Iterable[str]) -> None:
        tables = [self._record_table(name) for name in names]
        if not tables:
            return
        async with self._begin("drop tables") as conn:
            for table in tables:
                await conn.run_sync(table.drop, checkfirst=True)
                logger.debug("Dropped table %s", table.name)
        for table in tables:
            self._tables.pop(table.name, None)
            self._metadata.remove(table)

    # ── Rows ─────────────────────────────────────────────────────────

    async def get(self, table: str, key: str) -> Payload | None:
        t = self._record_table(table)
        async with self._begin(f"read {table}") as conn:
            result = await conn.execute(select(t.c.value).where(t.c.key == key))
            return result.scalar_one_or_none()

    async def put_many(self, table: str, items: Sequence[tuple[str, Payload]]) -> None:
        if not items:
            return
        t = self._record_table(table)
        rows = dict(items)  # a key repeated in one batch keeps its last payload
        async with self._begin(f"write {table}") as conn:
            await conn.execute(delete(t).where(t.c.key.in_(list(rows))))
            await conn.execute(insert(t), [{"key": k, "value": v} for k, v in rows.items()])

    async def delete_many(self, table: str, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        t = self._record_table(table)
        async with self._begin(f"delete from {table}") as conn:
            await conn.execute(delete(t).where(t.c.key.in_(keys)))

    async def values(self, table: str) -> list[Payload]:
        t = self._record_table(table)
        async with self._begin(f"list {table}") as conn:
            result = await conn.execute(select(t.c.value))
            return list(result.scalars().all())

    async def keys(self, table: str) -> list[str]:
        t = self._record_table(table)
        async with self._begin(f"list keys of {table}") as conn:
            result = await conn.execute(select(t.c.key))
            return list(result.scalars().all())

    async def replace(self, table: str, items: Sequence[tuple[str, Payload]]) -> list[str]:
        t = self._record_table(table)
        rows = dict(items)
        async with self._begin(f"reconcile {table}") as conn:
            existing = (await conn.execute(select(t.c.key))).scalars().all()
            stale = [key for key in existing if key not in rows]
            if stale:
                await conn.execute(delete(t).where(t.c.key.in_(stale)))
            if rows:
                await conn.execute(delete(t).where(t.c.key.in_(list(rows))))
                await conn.execute(insert(t), [{"key": k, "value": v} for k, v in rows.items()])
        return stale

    async def close(self) -> None:
        await self._engine.dispose()
