"""GitLab REST API v4 adapter."""

from __future__ import annotations

import logging
from urllib.parse import quote

from app.adapters.base import RestAdapter
from app.errors import UpstreamRequestError
from app.schemas.gitlab import GitLabBranch, GitLabPipeline, GitLabProject
from app.schemas.provider import Provider

logger = logging.getLogger(__name__)


def _encode(value: str | int) -> str:
    # Project ids may be paths like "group/project"; GitLab wants them URL-encoded.
    return quote(str(value), safe="")


class GitLabAdapter(RestAdapter):
    provider = Provider.GITLAB

    def auth_headers(self) -> dict[str, str]:
        return {"PRIVATE-TOKEN": self.token}

    async def get_project(self, project_id: str) -> GitLabProject:
        data = await self.request("GET", f"/projects/{_encode(project_id)}")
        return self.parse(GitLabProject, data)

    async def list_branches(self, project_id: str) -> list[GitLabBranch]:
        data = await self.request("GET", f"/projects/{_encode(project_id)}/repository/branches")
        return self.parse_list(GitLabBranch, data)

    async def list_pipelines(self, project_id: str, per_page: int = 5) -> list[GitLabPipeline]:
        data = await self.request(
            "GET",
            f"/projects/{_encode(project_id)}/pipelines",
            params={"per_page": str(per_page), "order_by": "id", "sort": "desc"},
        )
        return self.parse_list(GitLabPipeline, data)

    async def trigger_pipeline(self, project_id: str, ref: str) -> GitLabPipeline | None:
        data = await self.request(
            "POST", f"/projects/{_encode(project_id)}/pipeline", json={"ref": ref}
        )
        return self.parse(GitLabPipeline, data) if data else None

    async def search_projects(
        self, query: str, *, membership: bool = True, per_page: int = 20
    ) -> list[GitLabProject]:
        params = {"search": query, "simple": "true", "per_page": str(per_page)}
        if membership:
            params["membership"] = "true"
        data = await self.request("GET", "/projects", params=params)
        return self.parse_list(GitLabProject, data)

    async def upsert_variable(self, project_id: str, key: str, value: str) -> str:
        """Update a project variable, creating it when GitLab reports 404.

        Returns ``"updated"`` or ``"created"``.
        """
        project = _encode(project_id)
        try:
            await self.request(
                "PUT",
                f"/projects/{project}/variables/{_encode(key)}",
                json={"value": value, "variable_type": "env_var"},
            )
            return "updated"
        except UpstreamRequestError as exc:
            if not exc.is_not_found:
                raise

        logger.debug("Variable %s not found on project %s, creating it", key, project_id)
        await self.request(
            "POST",
            f"/projects/{project}/variables",
            json={"key": key, "value": value, "variable_type": "env_var"},
        )
        return "created"
