"""Provider token endpoints. Token values are write-only."""

from fastapi import APIRouter, Depends

from app.database import get_store
from app.schemas.provider import Provider, TokensResponse, TokenStatus, TokenUpdate
from app.services import token_service
from app.store import LocalRecordStore, best_effort, try_persist

router = APIRouter()


async def _status(store: LocalRecordStore, persisted: bool = True) -> TokensResponse:
    tokens = await best_effort(
        token_service.get_tokens(store), dict(token_service.DEFAULT_TOKENS), "load tokens"
    )
    return TokensResponse(
        tokens=[TokenStatus(provider=p, configured=bool(tokens[p])) for p in Provider],
        has_tokens=token_service.has_tokens(tokens),
        persisted=persisted,
    )


@router.get("/", response_model=TokensResponse)
async def list_tokens(store: LocalRecordStore = Depends(get_store)):
    return await _status(store)


@router.put("/{provider}", response_model=TokensResponse)
async def save_token(
    provider: Provider, data: TokenUpdate, store: LocalRecordStore = Depends(get_store)
):
    persisted = await try_persist(
        token_service.save_token(store, provider, data.value.strip()), f"save {provider.label} token"
    )
    return await _status(store, persisted)


@router.delete("/{provider}", response_model=TokensResponse)
async def delete_token(provider: Provider, store: LocalRecordStore = Depends(get_store)):
    persisted = await try_persist(
        token_service.delete_token(store, provider), f"delete {provider.label} token"
    )
    return await _status(store, persisted)


@router.delete("/", response_model=TokensResponse)
async def clear_tokens(store: LocalRecordStore = Depends(get_store)):
    persisted = await try_persist(token_service.clear_tokens(store), "clear tokens")
    return await _status(store, persisted)
