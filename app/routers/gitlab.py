"""GitLab endpoints: cached projects, pipelines, and bulk variable sync."""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from app.adapters import get_transport
from app.database import get_store
from app.deps import gitlab_client
from app.errors import PersistenceError, ValidationError
from app.schemas.gitlab import (
    GitLabProject,
    PipelineTrigger,
    PipelineTriggerResponse,
    ProjectLoad,
    ProjectsResponse,
    ProjectState,
)
from app.schemas.sync import SyncResponse, VariableSyncRequest
from app.services import project_service, sync_service
from app.store import LocalRecordStore, best_effort, try_persist

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Cached projects ─────────────────────────────────────────────────


@router.get("/projects", response_model=ProjectsResponse)
async def list_projects(store: LocalRecordStore = Depends(get_store)):
    projects = await best_effort(project_service.get_projects(store), None, "load GitLab projects")
    if projects is None:
        return ProjectsResponse(projects=[], persisted=False)
    return ProjectsResponse(projects=projects)


@router.post("/projects", response_model=ProjectsResponse, status_code=201)
async def load_project(
    data: ProjectLoad,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    if not data.project_id.strip():
        raise ValidationError("Project ID is required.")
    client = await gitlab_client(store, transport, data.base_url)
    project = await project_service.load_project(client, data.project_id)
    persisted = await try_persist(project_service.cache_project(store, project), "cache GitLab project")
    projects = await best_effort(project_service.get_projects(store), [project], "load GitLab projects")
    return ProjectsResponse(projects=projects, persisted=persisted)


@router.get("/projects/search", response_model=list[GitLabProject])
async def search_projects(
    q: str = Query(..., min_length=1),
    membership: bool = True,
    per_page: int = Query(20, ge=1, le=100),
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    query = q.strip()
    if not query:
        raise ValidationError("Search query is required.")
    client = await gitlab_client(store, transport)
    return await client.search_projects(query, membership=membership, per_page=per_page)


@router.post("/projects/{project_id}/refresh", response_model=ProjectState)
async def refresh_project(
    project_id: str,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    cached = await best_effort(project_service.find_project(store, project_id), None, "read GitLab project")
    if cached is None:
        raise HTTPException(status_code=404, detail="Project not found")
    client = await gitlab_client(store, transport)
    project = await project_service.load_project(client, project_id)
    await try_persist(project_service.cache_project(store, project), "cache GitLab project")
    return project


@router.delete("/projects/{project_id}", response_model=ProjectsResponse)
async def remove_project(project_id: str, store: LocalRecordStore = Depends(get_store)):
    """Drop a project from the cache and return what is left.

    When storage fails nothing is known to be removed, so the response says
    ``persisted: false`` instead of claiming success.
    """
    try:
        removed = await project_service.remove_project(store, project_id)
    except PersistenceError as exc:
        logger.warning("Failed to remove GitLab project %s: %s", project_id, exc)
        return ProjectsResponse(projects=[], persisted=False)
    if not removed:
        raise HTTPException(status_code=404, detail="Project not found")
    projects = await best_effort(project_service.get_projects(store), [], "load GitLab projects")
    return ProjectsResponse(projects=projects)


@router.delete("/projects", response_model=ProjectsResponse)
async def clear_projects(store: LocalRecordStore = Depends(get_store)):
    persisted = await try_persist(project_service.clear_projects(store), "clear GitLab projects")
    return ProjectsResponse(projects=[], persisted=persisted)


# ── Pipelines ───────────────────────────────────────────────────────


@router.post("/projects/{project_id}/pipelines", response_model=PipelineTriggerResponse)
async def trigger_pipeline(
    project_id: str,
    data: PipelineTrigger,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    if not data.ref.strip():
        raise ValidationError("Branch is required.")
    project = await best_effort(project_service.find_project(store, project_id), None, "read GitLab project")
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    client = await gitlab_client(store, transport)
    project, branch = await project_service.trigger_pipeline(store, client, project, data.ref)
    return PipelineTriggerResponse(project=project, branch=branch)


# ── Variables ───────────────────────────────────────────────────────


@router.post("/variables", response_model=SyncResponse)
async def sync_variables(
    data: VariableSyncRequest,
    store: LocalRecordStore = Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    project_id = data.project_id.strip()
    if not project_id:
        raise ValidationError("Project ID is required.")
    client = await gitlab_client(store, transport, data.base_url)
    entries = sync_service.require_entries(data.env_text, "environment variable")

    async def upsert(key: str, value: str) -> None:
        await client.upsert_variable(project_id, key, value)

    results = await sync_service.sync_entries(entries, upsert, skip_empty=data.skip_empty)
    return sync_service.summarize(results, "variables")
