"""API settings endpoints (base URLs, Cloudflare account id)."""

from fastapi import APIRouter, Depends

from app.database import get_store
from app.deps import load_settings
from app.schemas.settings import ApiSettingsUpdate, SettingsResponse
from app.services import settings_service
from app.store import LocalRecordStore, try_persist

router = APIRouter()


@router.get("/", response_model=SettingsResponse)
async def get_settings(store: LocalRecordStore = Depends(get_store)):
    current = await load_settings(store)
    return SettingsResponse(**current.model_dump())


@router.patch("/", response_model=SettingsResponse)
async def update_settings(data: ApiSettingsUpdate, store: LocalRecordStore = Depends(get_store)):
    persisted = await try_persist(settings_service.save_settings(store, data), "save API settings")
    current = await load_settings(store)
    if not persisted:
        # Echo the requested values for this response even though they were not stored.
        current = current.model_copy(update=data.model_dump(exclude_none=True))
    return SettingsResponse(**current.model_dump(), persisted=persisted)


@router.delete("/", response_model=SettingsResponse)
async def reset_settings(store: LocalRecordStore = Depends(get_store)):
    persisted = await try_persist(settings_service.clear_settings(store), "reset API settings")
    current = await load_settings(store)
    return SettingsResponse(**current.model_dump(), persisted=persisted)
