"""Request-scoped helpers shared by the routers."""

from __future__ import annotations

import httpx

from app.adapters.cloudflare import CloudflareAdapter
from app.adapters.github import GitHubAdapter
from app.adapters.gitlab import GitLabAdapter
from app.schemas.provider import Provider
from app.schemas.settings import ApiSettings
from app.services import settings_service, token_service
from app.store import LocalRecordStore, best_effort


async def load_settings(store: LocalRecordStore) -> ApiSettings:
    return await best_effort(
        settings_service.get_settings(store),
        settings_service.default_settings(),
        "load API settings",
    )


async def load_token(store: LocalRecordStore, provider: Provider) -> str:
    token = await best_effort(
        token_service.get_token(store, provider), "", f"read {provider.label} token"
    )
    if not token:
        raise token_service.missing_token(provider)
    return token


async def _connection(
    store: LocalRecordStore, provider: Provider, base_url: str | None
) -> tuple[str, str | None]:
    """Stored token plus the base URL: request override, then user setting, then default."""
    token = await load_token(store, provider)
    api = await load_settings(store)
    match provider:
        case Provider.GITLAB:
            configured = api.gitlab_base_url
        case Provider.GITHUB:
            configured = api.github_base_url
        case Provider.CLOUDFLARE:
            configured = None
    resolved = settings_service.resolve_base_url(base_url, configured) if configured else base_url
    return token, resolved


async def gitlab_client(
    store: LocalRecordStore, transport: httpx.AsyncBaseTransport | None, base_url: str | None = None
) -> GitLabAdapter:
    token, url = await _connection(store, Provider.GITLAB, base_url)
    return GitLabAdapter(token, url, transport=transport)


async def github_client(
    store: LocalRecordStore, transport: httpx.AsyncBaseTransport | None, base_url: str | None = None
) -> GitHubAdapter:
    token, url = await _connection(store, Provider.GITHUB, base_url)
    return GitHubAdapter(token, url, transport=transport)


async def cloudflare_client(
    store: LocalRecordStore, transport: httpx.AsyncBaseTransport | None
) -> CloudflareAdapter:
    token, url = await _connection(store, Provider.CLOUDFLARE, None)
    return CloudflareAdapter(token, url, transport=transport)
