"""GitHub request/response schemas."""

from pydantic import BaseModel


class RepoRef(BaseModel):
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class GitHubPublicKey(BaseModel):
    key_id: str
    key: str  # base64, 32 bytes
