"""GitHub Actions secret endpoints."""

import httpx
from fastapi import APIRouter, Depends

from app.adapters import get_transport
from app.adapters.github import parse_repository_input
from app.database import get_store
from app.deps import github_client
from app.errors import ValidationError
from app.schemas.sync import SecretSyncRequest, SyncResponse
from app.services import sync_service
from app.store import LocalRecordStore

router = APIRouter()


@router.post("/secrets", response_model=SyncResponse)
async def sync_secrets(
    data: SecretSyncRequest,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    """Seal and upsert each KEY=VALUE line as a repository Actions secret."""
    repo = parse_repository_input(data.repository)
    if repo is None:
        raise ValidationError("Repository must be in the format owner/repo.")
    client = await github_client(store, transport, data.base_url)
    entries = sync_service.require_entries(data.env_text, "secret")

    async def upsert(name: str, value: str) -> None:
        await client.upsert_secret(repo, name, value)

    results = await sync_service.sync_entries(entries, upsert, skip_empty=data.skip_empty)
    return sync_service.summarize(results, "secrets")
