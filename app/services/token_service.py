"""Token service: provider tokens in the ``tokens`` table, encrypted at rest."""

from __future__ import annotations

import logging

from app.errors import ValidationError
from app.schemas.provider import Provider
from app.schemas.records import TokenRecord
from app.store import LocalRecordStore
from app.utils.crypto import decrypt, encrypt

logger = logging.getLogger(__name__)

DEFAULT_TOKENS: dict[Provider, str] = {provider: "" for provider in Provider}


async def get_token(store: LocalRecordStore, provider: Provider) -> str:
    record = await store.tokens.get(provider.value)
    if not record:
        return ""
    value = decrypt(record.value)
    if value is None:
        logger.warning("Stored %s token cannot be decrypted with the current secret key", provider.label)
        return ""
    return value


async def get_tokens(store: LocalRecordStore) -> dict[Provider, str]:
    tokens = dict(DEFAULT_TOKENS)
    for provider in Provider:
        tokens[provider] = await get_token(store, provider)
    return tokens


async def save_token(store: LocalRecordStore, provider: Provider, value: str) -> None:
    """Store a token; an empty value removes it."""
    if value:
        await store.tokens.put(TokenRecord(key=provider.value, value=encrypt(value)))
        logger.info("Saved %s token", provider.label)
    else:
        await store.tokens.delete(provider.value)
        logger.info("Removed %s token", provider.label)


async def delete_token(store: LocalRecordStore, provider: Provider) -> None:
    await save_token(store, provider, "")


async def clear_tokens(store: LocalRecordStore) -> None:
    await store.tokens.bulk_delete(p.value for p in Provider)
    logger.info("Cleared all provider tokens")


def has_tokens(tokens: dict[Provider, str]) -> bool:
    return any(tokens.get(provider) for provider in Provider)


def missing_token(provider: Provider) -> ValidationError:
    return ValidationError(f"{provider.label} token missing. Save it on the tokens endpoint first.")
