"""API settings schemas."""

from pydantic import BaseModel


class ApiSettings(BaseModel):
    gitlab_base_url: str
    github_base_url: str
    cloudflare_account_id: str = ""


class ApiSettingsUpdate(BaseModel):
    gitlab_base_url: str | None = None
    github_base_url: str | None = None
    cloudflare_account_id: str | None = None


class SettingsResponse(ApiSettings):
    persisted: bool = True
