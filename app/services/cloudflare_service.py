"""Cloudflare service: R2 bucket creation and DNS record management."""

from __future__ import annotations

import logging

from app.adapters.cloudflare import CloudflareAdapter
from app.errors import ValidationError
from app.schemas.cloudflare import (
    CreateR2BucketBody,
    CreateR2BucketResponse,
    DnsRecord,
    DnsRecordInput,
    DnsRecordType,
)

logger = logging.getLogger(__name__)


def validate_r2_body(body: CreateR2BucketBody) -> tuple[str, str, str]:
    """Return trimmed ``(bucket_name, account_id, token)`` or raise ValidationError."""
    bucket_name = (body.bucket_name or "").strip()
    account_id = (body.account_id or "").strip()
    token = (body.token or "").strip()
    if not bucket_name:
        raise ValidationError("Bucket name is required.")
    if not account_id:
        raise ValidationError("Cloudflare account ID is required.")
    if not token:
        raise ValidationError("Cloudflare API token is required.")
    return bucket_name, account_id, token


async def create_r2_bucket(client: CloudflareAdapter, account_id: str, bucket_name: str, enable_dev_domain: bool) -> CreateR2BucketResponse:
    bucket = await client.create_r2_bucket(account_id, bucket_name)
    if bucket is None:
        raise ValidationError("Unable to create R2 bucket.")
    dev_domain = await client.set_managed_domain(account_id, bucket.name, enable_dev_domain)
    logger.info("Created R2 bucket %s (dev domain %s)", bucket.name, "on" if dev_domain.enabled else "off")
    return CreateR2BucketResponse(bucket=bucket, dev_domain=dev_domain)


def require_account_id(account_id: str) -> str:
    account_id = account_id.strip()
    if not account_id:
        raise ValidationError("Cloudflare account ID missing. Save it on the settings endpoint first.")
    return account_id


def validate_record(record: DnsRecordInput) -> DnsRecordInput:
    record_type = record.type.strip().upper()
    if not record_type:
        raise ValidationError("Record type is required.")
    if record_type not in DnsRecordType.__members__:
        raise ValidationError(f"Unsupported record type: {record_type}.")
    name = record.name.strip()
    content = record.content.strip()
    if not name or not content:
        raise ValidationError("Record name and content are required.")
    return DnsRecordInput(type=record_type, name=name, content=content, proxied=record.proxied)


async def upsert_record(
    client: CloudflareAdapter, zone_id: str, record: DnsRecordInput, record_id: str | None = None
) -> DnsRecord:
    record = validate_record(record)
    saved = await client.upsert_dns_record(
        zone_id,
        type=record.type,
        name=record.name,
        content=record.content,
        proxied=record.proxied,
        record_id=record_id,
    )
    logger.info("%s %s record %s in zone %s", "Updated" if record_id else "Created", saved.type, saved.name, zone_id)
    return saved
