"""Record shapes persisted in the local record store."""

from pydantic import BaseModel, Field


class TokenRecord(BaseModel):
    key: str  # provider name
    value: str  # Fernet-encrypted token


class SettingRecord(BaseModel):
    key: str
    value: str


class StoredBranch(BaseModel):
    name: str
    default: bool = False


class PipelineSummary(BaseModel):
    id: int
    status: str
    ref: str
    sha: str
    web_url: str = ""
    created_at: str | None = None
    updated_at: str | None = None


class ProjectRecord(BaseModel):
    """Cached copy of a GitLab project. The GitLab API stays authoritative."""

    id: str
    name: str
    namespace: str
    web_url: str = ""
    branches: list[StoredBranch] = Field(default_factory=list)
    pipelines: list[PipelineSummary] = Field(default_factory=list)
