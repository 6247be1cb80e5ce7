"""
GitHub API helper utilities.

Rate limit parsing, redirect parsing and error response mapping shared by all
client calls.
"""

from __future__ import annotations

import logging
import re

import httpx

from apiwatch.github.exceptions import GitHubAPIError, GitHubRepoMoved

logger = logging.getLogger(__name__)

_REPO_URL = re.compile(r"(?:https?://[^/]+)?(?:/api/v3)?/repos/([^/?#]+)/([^/?#]+)")


class RateLimitInfo:
    """X-RateLimit headers of one response."""

    def __init__(self, response: httpx.Response) -> None:
        self.remaining = response.headers.get("X-RateLimit-Remaining")
        self.reset = response.headers.get("X-RateLimit-Reset")

    @property
    def reset_timestamp(self) -> int | None:
        return int(self.reset) if self.reset else None

    @property
    def is_exhausted(self) -> bool:
        return self.remaining is not None and int(self.remaining) == 0


def parse_redirect_location(location: str) -> tuple[str, str] | None:
    """
    (owner, repo) named by a redirect Location header, or None.

    Accepts absolute URLs (including GitHub Enterprise "/api/v3" hosts) and
    relative "/repos/{owner}/{repo}/..." paths.
    """
    if not location:
        return None
    match = _REPO_URL.match(location)
    if match is None:
        return None
    return match.group(1), match.group(2)


def moved_repo(response: httpx.Response) -> tuple[str, str] | None:
    """New (owner, repo) when `response` was reached through a repo redirect."""
    for hop in response.history:
        if hop.status_code in (301, 308):
            return parse_redirect_location(hop.headers.get("Location", ""))
    return None


def handle_error_response(response: httpx.Response, context: str) -> None:
    """
    Raise for any non-200 GitHub response.

    Args:
        response: The HTTP response from GitHub API
        context: What was being fetched, for the error message (e.g. "owner/repo")

    Raises:
        GitHubRepoMoved: For a repository redirect that reached us unfollowed
        GitHubAPIError: For authentication, authorization, rate limit or other API errors
    """
    if response.status_code == 200:
        return

    if response.status_code in (301, 302, 307, 308):
        location = response.headers.get("Location", "")
        logger.debug(f"Got {response.status_code} redirect for {context}, Location: {location!r}")
        new_repo = parse_redirect_location(location)
        raise GitHubRepoMoved(
            context,
            f"{new_repo[0]}/{new_repo[1]}" if new_repo else None,
            response.status_code,
        )

    rate_info = RateLimitInfo(response)
    if response.status_code == 401:
        raise GitHubAPIError("Invalid or expired GitHub token", 401)
    if response.status_code == 404:
        raise GitHubAPIError(f"Repository or resource not found: {context}", 404)
    if response.status_code in (403, 429):
        if rate_info.is_exhausted or response.status_code == 429:
            logger.warning(f"GitHub rate limit hit while fetching {context}")
            raise GitHubAPIError(
                "GitHub API rate limit exceeded",
                response.status_code,
                rate_limit_reset=rate_info.reset_timestamp,
            )
        raise GitHubAPIError(f"GitHub API forbidden: {context}", 403)
    if response.status_code == 422:
        raise GitHubAPIError(f"GitHub could not process the request for {context}", 422)
    raise GitHubAPIError(f"GitHub API error: {response.status_code}", response.status_code)
