"""Exceptions for the GitHub client."""

from __future__ import annotations


class GitHubAPIError(Exception):
    """A GitHub call that apiwatch could not turn into data."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        rate_limit_reset: int | None = None,
    ):
        self.message = message
        self.status_code = status_code
        # unix time
        self.rate_limit_reset = rate_limit_reset
        super().__init__(message)


class GitHubRepoMoved(GitHubAPIError):
    """A configured repository answered with a redirect that was not followed.

    new_full_name is None when the Location header does not name a repo.
    """

    def __init__(self, old_full_name: str, new_full_name: str | None, status_code: int = 301):
        self.old_full_name = old_full_name
        self.new_full_name = new_full_name
        target = new_full_name or "an unknown location"
        super().__init__(f"Repository {old_full_name} moved to {target}", status_code)
