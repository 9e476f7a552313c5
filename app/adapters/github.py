"""GitHub REST API adapter (Actions secrets)."""

from __future__ import annotations

import logging
from urllib.parse import quote

from app.adapters.base import RestAdapter
from app.schemas.github import GitHubPublicKey, RepoRef
from app.schemas.provider import Provider
from app.utils.sealed_box import seal

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"


def parse_repository_input(value: str) -> RepoRef | None:
    """Parse ``owner/repo``; anything else returns None."""
    segments = [segment.strip() for segment in value.strip().split("/")]
    if len(segments) != 2 or not all(segments):
        return None
    owner, repo = segments
    return RepoRef(owner=owner, repo=repo)


class GitHubAdapter(RestAdapter):
    provider = Provider.GITHUB

    def auth_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": API_VERSION,
        }

    @staticmethod
    def _repo_path(repo: RepoRef) -> str:
        return f"/repos/{quote(repo.owner, safe='')}/{quote(repo.repo, safe='')}"

    async def fetch_public_key(self, repo: RepoRef) -> GitHubPublicKey:
        data = await self.request("GET", f"{self._repo_path(repo)}/actions/secrets/public-key")
        return self.parse(GitHubPublicKey, data)

    async def upsert_secret(self, repo: RepoRef, name: str, value: str) -> None:
        """Seal ``value`` under the repository key and create or update the secret.

        The public key is fetched on every call since GitHub may rotate it.
        """
        public_key = await self.fetch_public_key(repo)
        encrypted_value = seal(public_key.key, value)
        await self.request(
            "PUT",
            f"{self._repo_path(repo)}/actions/secrets/{quote(name, safe='')}",
            json={"encrypted_value": encrypted_value, "key_id": public_key.key_id},
        )
        logger.info("Upserted secret %s on %s", name, repo.full_name)
