"""Cloudflare endpoints: R2 bucket creation and DNS record management."""

import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.adapters import get_transport
from app.adapters.cloudflare import CloudflareAdapter
from app.database import get_store
from app.deps import cloudflare_client, load_settings
from app.errors import ValidationError
from app.schemas.cloudflare import (
    CloudflareZone,
    CreateR2BucketBody,
    CreateR2BucketResponse,
    DnsRecord,
    DnsRecordInput,
)
from app.services import cloudflare_service
from app.store import LocalRecordStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ── R2 ──────────────────────────────────────────────────────────────


@router.post("/r2", response_model=CreateR2BucketResponse)
async def create_r2_bucket(
    body: CreateR2BucketBody,
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    """Create a bucket with the token from the request body (not the stored one)."""
    try:
        bucket_name, account_id, token = cloudflare_service.validate_r2_body(body)
        client = CloudflareAdapter(token, transport=transport)
        return await cloudflare_service.create_r2_bucket(
            client, account_id, bucket_name, body.enable_dev_domain
        )
    except ValidationError as exc:
        return JSONResponse(status_code=400, content={"error": exc.message})
    except Exception as exc:
        logger.exception("R2 bucket creation failed")
        message = getattr(exc, "message", None) or str(exc) or "Unexpected error"
        return JSONResponse(status_code=500, content={"error": message})


# ── Zones & DNS ─────────────────────────────────────────────────────


@router.get("/zones", response_model=list[CloudflareZone])
async def list_zones(
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    api = await load_settings(store)
    account_id = cloudflare_service.require_account_id(api.cloudflare_account_id)
    client = await cloudflare_client(store, transport)
    return await client.list_zones(account_id)


@router.get("/zones/{zone_id}/records", response_model=list[DnsRecord])
async def list_records(
    zone_id: str,
    search: str | None = None,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    client = await cloudflare_client(store, transport)
    return await client.list_dns_records(zone_id, search)


@router.post("/zones/{zone_id}/records", response_model=DnsRecord, status_code=201)
async def create_record(
    zone_id: str,
    data: DnsRecordInput,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    cloudflare_service.validate_record(data)
    client = await cloudflare_client(store, transport)
    return await cloudflare_service.upsert_record(client, zone_id, data)


@router.put("/zones/{zone_id}/records/{record_id}", response_model=DnsRecord)
async def update_record(
    zone_id: str,
    record_id: str,
    data: DnsRecordInput,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    cloudflare_service.validate_record(data)
    client = await cloudflare_client(store, transport)
    return await cloudflare_service.upsert_record(client, zone_id, data, record_id)


@router.delete("/zones/{zone_id}/records/{record_id}", status_code=204)
async def delete_record(
    zone_id: str,
    record_id: str,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    client = await cloudflare_client(store, transport)
    await client.delete_dns_record(zone_id, record_id)
