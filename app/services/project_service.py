"""Project service: GitLab project cache in the ``projects`` table.

The cache is never the source of truth: loading or refreshing a project
always goes back to GitLab, and the stored copy is replaced wholesale.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.adapters.gitlab import GitLabAdapter
from app.errors import UpstreamRequestError, ValidationError
from app.schemas.gitlab import BranchState, BranchStatus, GitLabProject, ProjectState
from app.schemas.records import ProjectRecord, StoredBranch
from app.store import LocalRecordStore, best_effort

logger = logging.getLogger(__name__)

PIPELINES_PER_PROJECT = 5


def revive(record: ProjectRecord) -> ProjectState:
    """Cached record -> live state; every branch starts idle."""
    return ProjectState(
        id=str(record.id),
        name=record.name,
        namespace=record.namespace,
        web_url=record.web_url or "",
        branches=[BranchState(name=b.name, default=b.default) for b in record.branches],
        pipelines=list(record.pipelines),
    )


def serialize(project: ProjectState) -> ProjectRecord:
    """Live state -> cached record; transient branch status is dropped."""
    return ProjectRecord(
        id=project.id,
        name=project.name,
        namespace=project.namespace,
        web_url=project.web_url,
        branches=[StoredBranch(name=b.name, default=b.default) for b in project.branches],
        pipelines=list(project.pipelines),
    )


async def get_projects(store: LocalRecordStore) -> list[ProjectState]:
    records = await store.projects.list()
    return [revive(r) for r in records]


async def save_projects(store: LocalRecordStore, projects: list[ProjectState]) -> None:
    """Replace the cached set. Projects missing from ``projects`` are deleted."""
    await store.projects.reconcile([serialize(p) for p in projects])


async def load_project(
    client: GitLabAdapter, project_id: str, existing: GitLabProject | None = None
) -> ProjectState:
    """Fetch a project with its branches and latest pipelines from GitLab."""
    project_id = project_id.strip()
    if not project_id:
        raise ValidationError("Project ID is required.")

    project = existing or await client.get_project(project_id)
    branches = await client.list_branches(project_id)
    pipelines = await client.list_pipelines(project_id, per_page=PIPELINES_PER_PROJECT)
    return ProjectState(
        id=str(project.id),
        name=project.name,
        namespace=project.name_with_namespace,
        web_url=project.web_url,
        branches=[BranchState(name=b.name, default=b.default) for b in branches],
        pipelines=[p.summary() for p in pipelines],
    )


def upsert(projects: list[ProjectState], project: ProjectState) -> list[ProjectState]:
    return [p for p in projects if p.id != project.id] + [project]


async def cache_project(store: LocalRecordStore, project: ProjectState) -> ProjectState:
    """Insert or replace one project in the cached set."""
    current = await get_projects(store)
    await save_projects(store, upsert(current, project))
    logger.info("Cached GitLab project %s (%s)", project.id, project.namespace)
    return project


async def remove_project(store: LocalRecordStore, project_id: str) -> bool:
    current = await get_projects(store)
    remaining = [p for p in current if p.id != project_id]
    if len(remaining) == len(current):
        return False
    await save_projects(store, remaining)
    return True


async def clear_projects(store: LocalRecordStore) -> None:
    await save_projects(store, [])


async def find_project(store: LocalRecordStore, project_id: str) -> ProjectState | None:
    record = await store.projects.get(project_id)
    return revive(record) if record else None


async def trigger_pipeline(
    store: LocalRecordStore, client: GitLabAdapter, project: ProjectState, ref: str
) -> tuple[ProjectState, BranchState]:
    """Trigger a pipeline on ``ref`` and refresh the cached pipeline list.

    Returns the project and the branch state after the attempt. The branch
    carries ``error`` when GitLab rejected the trigger.
    """
    ref = ref.strip()
    if not ref:
        raise ValidationError("Branch is required.")

    branch = next((b for b in project.branches if b.name == ref), None)
    if branch is None:
        branch = BranchState(name=ref)
    branch.status = BranchStatus.TRIGGERING
    branch.error = None

    try:
        await client.trigger_pipeline(project.id, ref)
    except UpstreamRequestError as exc:
        logger.warning("Pipeline trigger failed for %s@%s: %s", project.id, ref, exc.message)
        branch.status = BranchStatus.ERROR
        branch.error = exc.message
        return project, branch

    branch.status = BranchStatus.SUCCESS
    branch.last_triggered_at = datetime.now(timezone.utc)
    logger.info("Triggered pipeline for %s@%s", project.id, ref)

    try:
        pipelines = await client.list_pipelines(project.id, per_page=PIPELINES_PER_PROJECT)
    except UpstreamRequestError as exc:
        logger.warning("Could not refresh pipelines for %s: %s", project.id, exc.message)
        return project, branch

    project.pipelines = [p.summary() for p in pipelines]
    await best_effort(store.projects.put(serialize(project)), None, "cache refreshed pipelines")
    return project, branch