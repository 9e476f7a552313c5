"""GitLab request/response schemas."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from app.schemas.records import PipelineSummary


# ── Upstream shapes (GitLab API v4) ──────────────────────────────────


class GitLabProject(BaseModel):
    id: int
    name: str
    name_with_namespace: str
    web_url: str = ""


class GitLabBranch(BaseModel):
    name: str
    default: bool = False


class GitLabPipeline(BaseModel):
    id: int
    status: str
    ref: str
    sha: str
    web_url: str = ""
    created_at: str | None = None
    updated_at: str | None = None

    def summary(self) -> PipelineSummary:
        return PipelineSummary.model_validate(self.model_dump())


# ── Cached project state ─────────────────────────────────────────────


class BranchStatus(StrEnum):
    IDLE = "idle"
    TRIGGERING = "triggering"
    SUCCESS = "success"
    ERROR = "error"


class BranchState(BaseModel):
    name: str
    default: bool = False
    status: BranchStatus = BranchStatus.IDLE
    last_triggered_at: datetime | None = None
    error: str | None = None


class ProjectState(BaseModel):
    id: str
    name: str
    namespace: str
    web_url: str = ""
    branches: list[BranchState] = Field(default_factory=list)
    pipelines: list[PipelineSummary] = Field(default_factory=list)


class ProjectsResponse(BaseModel):
    projects: list[ProjectState]
    persisted: bool = True


# ── Requests ─────────────────────────────────────────────────────────


class ProjectLoad(BaseModel):
    project_id: str
    base_url: str | None = None


class PipelineTrigger(BaseModel):
    ref: str


class PipelineTriggerResponse(BaseModel):
    project: ProjectState
    branch: BranchState
