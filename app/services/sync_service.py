"""Bulk sync of KEY=VALUE entries to a provider, one independent upsert per entry."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from app.errors import GitUtilsError, ValidationError
from app.schemas.sync import EntryResult, EntryStatus, EnvEntry, SyncResponse

logger = logging.getLogger(__name__)

Upsert = Callable[[str, str], Awaitable[object]]


def parse_env_input(text: str) -> list[EnvEntry]:
    """Parse dotenv-style text: blank lines and ``#`` comments are ignored.

    Only the first ``=`` separates key from value; a line without ``=`` gets an
    empty value.
    """
    entries: list[EnvEntry] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        if key:
            entries.append(EnvEntry(key=key, value=value))
    return entries


def initial_statuses(entries: list[EnvEntry], skip_empty: bool) -> list[EntryResult]:
    return [
        EntryResult(
            key=entry.key,
            status=EntryStatus.SKIPPED if skip_empty and not entry.value else EntryStatus.PENDING,
        )
        for entry in entries
    ]


async def sync_entries(entries: list[EnvEntry], upsert: Upsert, *, skip_empty: bool) -> list[EntryResult]:
    """Upsert each entry in order. A failed entry is recorded and the rest continue."""
    results = initial_statuses(entries, skip_empty)
    for entry, result in zip(entries, results):
        if result.status is EntryStatus.SKIPPED:
            continue
        result.status = EntryStatus.IN_PROGRESS
        try:
            await upsert(entry.key, entry.value)
        except GitUtilsError as exc:
            logger.warning("Failed for %s: %s", entry.key, exc.message)
            result.status = EntryStatus.ERROR
            result.error = exc.message
        else:
            result.status = EntryStatus.SUCCESS
    return results


def summarize(results: list[EntryResult], noun: str) -> SyncResponse:
    counts = {status: 0 for status in EntryStatus}
    for result in results:
        counts[result.status] += 1
    failed = counts[EntryStatus.ERROR]
    if failed:
        first = next(r for r in results if r.status is EntryStatus.ERROR)
        message = f"Failed for {first.key}: {first.error}"
        if failed > 1:
            message += f" (and {failed - 1} more)"
    else:
        message = f"{noun.capitalize()} synced successfully."
    return SyncResponse(
        results=results,
        succeeded=counts[EntryStatus.SUCCESS],
        failed=failed,
        skipped=counts[EntryStatus.SKIPPED],
        message=message,
    )


def require_entries(text: str, noun: str) -> list[EnvEntry]:
    entries = parse_env_input(text)
    if not entries:
        raise ValidationError(f"Provide at least one {noun} in KEY=VALUE format.")
    return entries
