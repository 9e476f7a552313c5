"""Settings service: base URLs and account ids, defaulted when absent."""

from __future__ import annotations

from app.config import settings as config
from app.schemas.records import SettingRecord
from app.schemas.settings import ApiSettings, ApiSettingsUpdate
from app.store import LocalRecordStore

# ApiSettings field names double as the keys of the settings table.
SETTINGS_KEYS = ("gitlab_base_url", "github_base_url", "cloudflare_account_id")


def default_settings() -> ApiSettings:
    return ApiSettings(
        gitlab_base_url=config.gitlab_api_url,
        github_base_url=config.github_api_url,
        cloudflare_account_id="",
    )


async def get_settings(store: LocalRecordStore) -> ApiSettings:
    values = default_settings().model_dump()
    for key in SETTINGS_KEYS:
        record = await store.settings.get(key)
        if record:
            values[key] = record.value
    return ApiSettings(**values)


async def save_settings(store: LocalRecordStore, data: ApiSettingsUpdate) -> ApiSettings:
    """Write only the fields that were provided."""
    records = [
        SettingRecord(key=key, value=value)
        for key, value in data.model_dump(exclude_none=True).items()
    ]
    if records:
        await store.settings.bulk_put(records)
    return await get_settings(store)


async def clear_settings(store: LocalRecordStore) -> None:
    await store.settings.bulk_delete(SETTINGS_KEYS)


def resolve_base_url(value: str | None, default: str) -> str:
    """Blank overrides fall back to the default API URL."""
    return (value or "").strip() or default
