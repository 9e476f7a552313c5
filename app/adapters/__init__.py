"""Provider adapters. Routers build one per request through ``app.deps``."""

from __future__ import annotations

import httpx

from app.adapters.base import RestAdapter
from app.adapters.cloudflare import CloudflareAdapter
from app.adapters.github import GitHubAdapter
from app.adapters.gitlab import GitLabAdapter


def get_transport() -> httpx.AsyncBaseTransport | None:
    """FastAPI dependency; tests override it with ``httpx.MockTransport``."""
    return None


__all__ = [
    "CloudflareAdapter",
    "GitHubAdapter",
    "GitLabAdapter",
    "RestAdapter",
    "get_transport",
]
