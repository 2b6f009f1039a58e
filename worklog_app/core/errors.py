"""Exception taxonomy for the worklog dashboard."""

from __future__ import annotations


class WorklogAppError(Exception):
    """Base exception for worklog dashboard errors."""


class JiraClientError(WorklogAppError):
    """Exception raised for errors talking to the Jira API."""

    def __init__(self, message: str, status_code: int | None = None, response=None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class AuthError(JiraClientError):
    """Current-identity lookup failed (invalid or expired credentials)."""


class DiscoveryError(JiraClientError):
    """Issue search failed; fatal to the whole search."""


class FetchError(JiraClientError):
    """Worklog fetch for a single issue failed; recovered per issue."""

    def __init__(self, message: str, issue_key: str | None = None, status_code: int | None = None, response=None):
        self.issue_key = issue_key
        super().__init__(message, status_code=status_code, response=response)


class RateLimitedError(FetchError):
    """Worklog fetch refused locally because the issue is cooling down."""
