"""Cloudflare request/response schemas."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


# ── R2 (camelCase wire format of POST /api/cloudflare/r2) ────────────


class CreateR2BucketBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bucket_name: str | None = Field(None, alias="bucketName")
    account_id: str | None = Field(None, alias="accountId")
    token: str | None = None
    enable_dev_domain: bool = Field(False, alias="enableDevDomain")


class R2Bucket(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str | None = None
    created_at: str | None = Field(None, alias="createdAt")


class R2DevDomain(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bucket_id: str = Field("", alias="bucketId")
    domain: str = ""
    enabled: bool = False


class CreateR2BucketResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bucket: R2Bucket
    dev_domain: R2DevDomain = Field(alias="devDomain")


# ── DNS ──────────────────────────────────────────────────────────────


class DnsRecordType(StrEnum):
    A = "A"
    AAAA = "AAAA"
    CAA = "CAA"
    CERT = "CERT"
    CNAME = "CNAME"
    DNSKEY = "DNSKEY"
    DS = "DS"
    HTTPS = "HTTPS"
    LOC = "LOC"
    MX = "MX"
    NAPTR = "NAPTR"
    NS = "NS"
    OPENPGPKEY = "OPENPGPKEY"
    PTR = "PTR"
    SMIMEA = "SMIMEA"
    SRV = "SRV"
    SSHFP = "SSHFP"
    SVCB = "SVCB"
    TLSA = "TLSA"
    TXT = "TXT"
    URI = "URI"


class CloudflareZone(BaseModel):
    id: str
    name: str
    status: str = ""


class DnsRecord(BaseModel):
    id: str
    type: str
    name: str
    content: str = ""
    proxied: bool = False
    ttl: int = 1


class DnsRecordInput(BaseModel):
    type: str
    name: str
    content: str
    proxied: bool = False
