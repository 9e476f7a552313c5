"""Versioned table layout of the local record store.

Each ``SchemaVersion`` lists the tables it changes relative to the previous
version: a primary-key name adds (or keeps) a table, ``None`` removes it.
Tables not mentioned carry over, so ``layout_at`` folds the versions into the
full layout expected at any given number.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.store.backend import PersistenceBackend

UpgradeHook = Callable[["PersistenceBackend"], Awaitable[None]]


@dataclass(frozen=True)
class SchemaVersion:
    number: int
    tables: dict[str, str | None] = field(default_factory=dict)
    # Runs after new tables exist and before removed ones are dropped.
    upgrade: UpgradeHook | None = None


def layout_at(versions: Sequence[SchemaVersion], number: int) -> dict[str, str]:
    """Return ``{table: primary_key}`` as of version ``number``."""
    layout: dict[str, str] = {}
    for version in versions:
        if version.number > number:
            break
        for name, key in version.tables.items():
            if key is None:
                layout.pop(name, None)
            else:
                layout[name] = key
    return layout


def check_versions(versions: Sequence[SchemaVersion]) -> None:
    numbers = [v.number for v in versions]
    if not numbers:
        raise ValueError("At least one schema version is required")
    if numbers != sorted(set(numbers)) or numbers[0] < 1:
        raise ValueError(f"Schema versions must be strictly increasing from 1: {numbers}")


SCHEMA_VERSIONS: tuple[SchemaVersion, ...] = (
    SchemaVersion(1, {"kv": "key"}),
    SchemaVersion(
        2,
        {
            "kv": None,
            "tokens": "key",
            "settings": "key",
            "projects": "id",
        },
    ),
)

CURRENT_VERSION = SCHEMA_VERSIONS[-1].number
