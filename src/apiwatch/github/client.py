"""
Minimal GitHub REST client for the data apiwatch needs.

Covers commit comparison (with per-file patches), file contents at a ref,
recent commits and pull requests. All calls go through one pooled
httpx.Client; use the client as a context manager so it gets closed.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from apiwatch.domain.models import ChangedFile, CommitInfo, Comparison, PullRequestInfo
from apiwatch.github.exceptions import GitHubAPIError
from apiwatch.github.helpers import handle_error_response, moved_repo

logger = logging.getLogger(__name__)


class GitHubClient:
    API_VERSION = "2022-11-28"

    def __init__(
        self,
        token: str = "",
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.API_VERSION,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=5.0),
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, context: str, params: Optional[dict[str, Any]] = None) -> Any:
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = self._client.get(url, params=clean)
        except httpx.TimeoutException as e:
            raise GitHubAPIError(f"GitHub API request timed out for {context}") from e
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"GitHub API request failed for {context}: {e}") from e
        handle_error_response(response, context)
        moved = moved_repo(response)
        if moved is not None:
            logger.warning(f"{context} is served from {moved[0]}/{moved[1]}; update SERVICES_CONFIG")
        return response.json()

    def compare_commits(self, owner: str, repo: str, base: str, head: str) -> Comparison:
        """Compare two refs; each changed file carries its unified-diff patch when GitHub sends one."""
        url = f"/repos/{owner}/{repo}/compare/{quote(base, safe='/')}...{quote(head, safe='/')}"
        data = self._get(url, f"{owner}/{repo} {base}...{head}")
        files = [_normalize_file(f) for f in data.get("files") or []]
        commits = [_normalize_commit(c) for c in data.get("commits") or []]
        logger.info(f"Compared {owner}/{repo} {base}...{head}: {len(files)} file(s), {len(commits)} commit(s)")
        return Comparison(
            status=data.get("status", ""),
            ahead_by=data.get("ahead_by", 0),
            behind_by=data.get("behind_by", 0),
            total_commits=data.get("total_commits", 0),
            files=files,
            commits=commits,
        )

    def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> str:
        context = f"{owner}/{repo}:{path}@{ref}"
        data = self._get(
            f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'), safe='/')}",
            context,
            params={"ref": ref},
        )
        if not isinstance(data, dict) or "content" not in data:
            raise GitHubAPIError(f"Not a file: {context}")
        try:
            return base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as e:
            raise GitHubAPIError(f"Could not decode content of {context}") from e

    def list_commits(
        self,
        owner: str,
        repo: str,
        since: Optional[str] = None,
        per_page: int = 10,
    ) -> list[CommitInfo]:
        data = self._get(
            f"/repos/{owner}/{repo}/commits",
            f"{owner}/{repo}",
            params={"since": since, "per_page": min(per_page, 100)},
        )
        return [_normalize_commit(c) for c in data]

    def list_pull_requests(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        per_page: int = 20,
    ) -> list[PullRequestInfo]:
        data = self._get(
            f"/repos/{owner}/{repo}/pulls",
            f"{owner}/{repo}",
            params={"state": state, "per_page": min(per_page, 100)},
        )
        return [_normalize_pull(pr) for pr in data]


def _normalize_file(data: dict[str, Any]) -> ChangedFile:
    return ChangedFile(
        path=data["filename"],
        status=data.get("status", "modified"),
        patch=data.get("patch"),
        additions=data.get("additions", 0),
        deletions=data.get("deletions", 0),
    )


def _normalize_commit(data: dict[str, Any]) -> CommitInfo:
    commit = data.get("commit") or {}
    author = commit.get("author") or {}
    return CommitInfo(
        sha=data["sha"],
        message=commit.get("message", ""),
        author=author.get("name"),
        date=author.get("date"),
        url=data.get("html_url"),
    )


def _normalize_pull(data: dict[str, Any]) -> PullRequestInfo:
    user = data.get("user") or {}
    return PullRequestInfo(
        number=data["number"],
        title=data.get("title", ""),
        state=data.get("state", ""),
        author=user.get("login"),
        created_at=data.get("created_at"),
        head_branch=(data.get("head") or {}).get("ref", ""),
        base_branch=(data.get("base") or {}).get("ref", ""),
        url=data.get("html_url"),
    )
