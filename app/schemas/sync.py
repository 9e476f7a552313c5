"""Bulk KEY=VALUE sync schemas (GitLab variables, GitHub secrets)."""

from enum import StrEnum

from pydantic import BaseModel


class EntryStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class EnvEntry(BaseModel):
    key: str
    value: str


class EntryResult(BaseModel):
    key: str
    status: EntryStatus = EntryStatus.PENDING
    error: str | None = None
    # value is NEVER returned


class SyncResponse(BaseModel):
    results: list[EntryResult]
    succeeded: int
    failed: int
    skipped: int
    message: str


class VariableSyncRequest(BaseModel):
    project_id: str
    env_text: str
    skip_empty: bool = True
    base_url: str | None = None


class SecretSyncRequest(BaseModel):
    repository: str  # owner/repo
    env_text: str
    skip_empty: bool = True
    base_url: str | None = None
