"""Cloudflare API v4 adapter (R2 buckets, zones, DNS records).

Cloudflare wraps every response in ``{"success", "errors", "result"}``;
``unwrap`` returns ``result`` and turns ``success: false`` into an error.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from app.adapters.base import RestAdapter
from app.errors import UpstreamRequestError
from app.schemas.cloudflare import CloudflareZone, DnsRecord, R2Bucket, R2DevDomain
from app.schemas.provider import Provider

AUTOMATIC_TTL = 1


def _errors_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    messages = [
        str(err.get("message", "")).strip()
        for err in payload.get("errors") or []
        if isinstance(err, dict)
    ]
    return "; ".join(m for m in messages if m)


class CloudflareAdapter(RestAdapter):
    provider = Provider.CLOUDFLARE

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def error_message(self, response: httpx.Response) -> str:
        try:
            text = _errors_text(response.json())
        except ValueError:
            text = ""
        return text or super().error_message(response)

    def unwrap(self, data: Any) -> Any:
        if isinstance(data, dict) and "success" in data:
            if not data["success"]:
                raise UpstreamRequestError(
                    200, _errors_text(data) or "Cloudflare request was not successful."
                )
            return data.get("result")
        return data

    # ── R2 ───────────────────────────────────────────────────────────

    async def create_r2_bucket(self, account_id: str, name: str) -> R2Bucket | None:
        data = await self.request(
            "POST", f"/accounts/{quote(account_id, safe='')}/r2/buckets", json={"name": name}
        )
        if not isinstance(data, dict) or not data.get("name"):
            return None
        return self.parse(
            R2Bucket,
            {"name": data["name"], "location": data.get("location"), "createdAt": data.get("creation_date")},
        )

    async def set_managed_domain(self, account_id: str, bucket: str, enabled: bool) -> R2DevDomain:
        data = await self.request(
            "PUT",
            f"/accounts/{quote(account_id, safe='')}/r2/buckets/{quote(bucket, safe='')}/domains/managed",
            json={"enabled": enabled},
        )
        return self.parse(R2DevDomain, data or {"enabled": enabled})

    # ── Zones & DNS ──────────────────────────────────────────────────

    async def list_zones(self, account_id: str) -> list[CloudflareZone]:
        data = await self.request(
            "GET",
            "/zones",
            params={"account.id": account_id, "per_page": 50, "order": "status", "direction": "desc"},
        )
        return self.parse_list(CloudflareZone, data)

    async def list_dns_records(self, zone_id: str, search: str | None = None) -> list[DnsRecord]:
        params: dict[str, Any] = {"per_page": 100, "order": "type", "direction": "asc"}
        if search and search.strip():
            params["search"] = search.strip()
        data = await self.request("GET", f"/zones/{quote(zone_id, safe='')}/dns_records", params=params)
        return self.parse_list(DnsRecord, data)

    async def upsert_dns_record(
        self,
        zone_id: str,
        *,
        type: str,
        name: str,
        content: str,
        proxied: bool = False,
        record_id: str | None = None,
    ) -> DnsRecord:
        """Update ``record_id`` when given, otherwise create a new record."""
        payload = {
            "type": type.upper(),
            "name": name,
            "content": content,
            "proxied": proxied,
            "ttl": AUTOMATIC_TTL,
        }
        base = f"/zones/{quote(zone_id, safe='')}/dns_records"
        if record_id:
            data = await self.request("PUT", f"{base}/{quote(record_id, safe='')}", json=payload)
        else:
            data = await self.request("POST", base, json=payload)
        return self.parse(DnsRecord, data)

    async def delete_dns_record(self, zone_id: str, record_id: str) -> None:
        await self.request(
            "DELETE",
            f"/zones/{quote(zone_id, safe='')}/dns_records/{quote(record_id, safe='')}",
        )
