"""Upstream providers and the token/status schemas built on them."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class Provider(StrEnum):
    """Upstream services a token can be stored for."""

    GITLAB = "gitlab"
    GITHUB = "github"
    CLOUDFLARE = "cloudflare"

    @property
    def label(self) -> str:
        match self:
            case Provider.GITLAB:
                return "GitLab"
            case Provider.GITHUB:
                return "GitHub"
            case Provider.CLOUDFLARE:
                return "Cloudflare"


class TokenUpdate(BaseModel):
    value: str  # plaintext, encrypted before storage, empty string deletes


class TokenStatus(BaseModel):
    provider: Provider
    configured: bool


class TokensResponse(BaseModel):
    tokens: list[TokenStatus]
    has_tokens: bool
    persisted: bool = True
    # value is NEVER returned
