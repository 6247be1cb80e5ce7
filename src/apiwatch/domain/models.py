from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ChangeStatus = Literal[
    "added",
    "modified",
    "removed",
    "renamed",
    "copied",
    "changed",
    "unchanged",
]


class ServiceConfig(BaseModel):
    """A service whose repository is watched for API changes.

    Accepts the camelCase keys used by SERVICES_CONFIG as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    repo_owner: str = Field(alias="repoOwner")
    repo_name: str = Field(alias="repoName")
    automation_repo_path: str = Field(default="", alias="automationRepoPath")
    api_patterns: tuple[str, ...] = Field(default=(), alias="apiPatterns")

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"


class ChangedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    status: ChangeStatus = "modified"
    patch: Optional[str] = None
    additions: int = 0
    deletions: int = 0


class CommitInfo(BaseModel):
    sha: str
    message: str = ""
    author: Optional[str] = None
    date: Optional[str] = None
    url: Optional[str] = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def subject(self) -> str:
        return self.message.split("\n")[0]


class PullRequestInfo(BaseModel):
    number: int
    title: str
    state: str
    author: Optional[str] = None
    created_at: Optional[str] = None
    head_branch: str = ""
    base_branch: str = ""
    url: Optional[str] = None


class Comparison(BaseModel):
    """Result of comparing two refs: aggregate counts plus per-file changes."""

    status: str = ""
    ahead_by: int = 0
    behind_by: int = 0
    total_commits: int = 0
    files: list[ChangedFile] = Field(default_factory=list)
    commits: list[CommitInfo] = Field(default_factory=list)
