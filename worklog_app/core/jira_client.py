"""Jira API client wrapper (REST v3 search, worklogs, current user, write pass-through)."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import requests
from jira import JIRA, JIRAError

from .config import (
    DEFAULT_MAX_RESULTS,
    DEFAULT_START_AT,
    ISSUE_SEARCH_FIELDS,
    JIRA_DATETIME_FORMAT,
    JIRA_REST_API_VERSION,
    WORKLOG_PAGE_SIZE,
)
from .errors import AuthError, DiscoveryError, FetchError, JiraClientError, RateLimitedError
from .mappers import map_discovered_issue, map_user_profile, map_worklogs, text_to_adf
from .models import DiscoveredIssue, UserProfile, WorklogModel
from .rate_limit import RequestRateLimiter

logger = logging.getLogger(__name__)


def format_started(value: datetime) -> str:
    """Render a worklog start time the way Jira accepts it (naive means UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.strftime(JIRA_DATETIME_FORMAT)


class JiraAPI:
    def __init__(
        self,
        server: str,
        email: str,
        token: str,
        *,
        rate_limiter: RequestRateLimiter | None = None,
    ):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token),
            options={"server": self.server, "rest_api_version": JIRA_REST_API_VERSION},
        )
        self.rate_limiter = rate_limiter
        self._user_cache: UserProfile | None = None
        self._user_lock = threading.Lock()

    # ------------------ Transport ------------------
    def _url(self, path: str) -> str:
        return f"{self.server}/rest/api/{JIRA_REST_API_VERSION}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        error_cls: type[JiraClientError] = JiraClientError,
        context: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
        **error_kwargs,
    ) -> Any:
        session = getattr(self.client, "_session", None)
        if session is None:
            raise error_cls(f"{context}: JIRA session unavailable", **error_kwargs)
        url = self._url(path)
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = params
        if payload is not None:
            kwargs["json"] = payload
        try:
            resp = session.request(method, url, **kwargs)
        except JIRAError as exc:
            raise error_cls(
                f"{context}: {exc.text or exc}", status_code=exc.status_code, **error_kwargs
            ) from exc
        except requests.RequestException as exc:
            raise error_cls(f"{context}: {exc}", **error_kwargs) from exc
        if resp.status_code >= 400:
            raise error_cls(
                f"{context} failed {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
                response=resp,
                **error_kwargs,
            )
        if resp.status_code == 204 or not (resp.text or "").strip():
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise error_cls(f"{context}: unparseable response body", status_code=resp.status_code, **error_kwargs) from exc

    # ------------------ Current User ------------------
    def myself(self) -> UserProfile:
        """Return the authenticated user's profile, cached for the client's lifetime."""
        with self._user_lock:
            if self._user_cache is not None:
                return self._user_cache
        data = self._request("GET", "myself", error_cls=AuthError, context="Current user lookup")
        if not isinstance(data, dict):
            raise AuthError("Current user lookup returned no profile")
        profile = map_user_profile(data)
        with self._user_lock:
            self._user_cache = profile
        return profile

    def clear_user_cache(self) -> None:
        """Forget the cached profile (logout or credential change)."""
        with self._user_lock:
            self._user_cache = None

    # ------------------ Issue Search ------------------
    def search_issues(
        self,
        jql: str,
        *,
        fields: Sequence[str] | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        start_at: int = DEFAULT_START_AT,
    ) -> list[DiscoveredIssue]:
        """Run the enhanced JQL search and return one window of matching issues.

        ``/search/jql`` pages with ``nextPageToken`` and has no ``startAt``, so
        the offset is applied by walking pages until ``start_at + max_results``
        issues are collected.
        """
        max_results = max(1, int(max_results))
        start_at = max(0, int(start_at))
        wanted = start_at + max_results
        params = {
            "jql": jql,
            "fields": ",".join(fields or ISSUE_SEARCH_FIELDS),
            "maxResults": max_results,
        }
        raw_issues: list[dict[str, Any]] = []
        token = None
        while len(raw_issues) < wanted:
            qp = dict(params)
            if token:
                qp["nextPageToken"] = token
            data = self._request("GET", "search/jql", params=qp, error_cls=DiscoveryError, context="Issue search")
            if not isinstance(data, dict):
                raise DiscoveryError("Issue search returned an unexpected payload")
            page = data.get("issues") or []
            raw_issues.extend(raw for raw in page if isinstance(raw, dict))
            token = data.get("nextPageToken")
            if not page or not token or data.get("isLast") is True:
                break
        window = raw_issues[start_at:wanted]
        try:
            return [map_discovered_issue(raw) for raw in window]
        except (AttributeError, TypeError, ValueError) as exc:
            raise DiscoveryError(f"Issue search returned a malformed issue: {exc}") from exc

    # ------------------ Worklogs ------------------
    def fetch_worklogs(self, issue_key: str) -> list[WorklogModel]:
        """Fetch the complete worklog collection for one issue (all pages).

        Any payload that does not map cleanly raises ``FetchError`` for this
        issue only.
        """
        if self.rate_limiter is not None and not self.rate_limiter.try_acquire(issue_key):
            logger.warning("Rate limiting worklog requests for issue %s", issue_key)
            raise RateLimitedError(
                f"Rate limit exceeded for issue {issue_key}", issue_key=issue_key, status_code=429
            )
        out: list[WorklogModel] = []
        start_at = 0
        while True:
            data = self._request(
                "GET",
                f"issue/{issue_key}/worklog",
                params={"startAt": start_at, "maxResults": WORKLOG_PAGE_SIZE},
                error_cls=FetchError,
                context=f"Worklog fetch for {issue_key}",
                issue_key=issue_key,
            )
            data = data or {}
            if not isinstance(data, dict):
                raise FetchError(f"Worklog fetch for {issue_key}: unexpected payload", issue_key=issue_key)
            page = data.get("worklogs") or []
            try:
                out.extend(map_worklogs(page, id_prefix=issue_key, offset=start_at))
            except (AttributeError, TypeError, ValueError) as exc:
                raise FetchError(f"Worklog fetch for {issue_key}: malformed worklog ({exc})", issue_key=issue_key) from exc
            total = data.get("total", len(out))
            start_at += len(page)
            if not page or not isinstance(total, int) or start_at >= total:
                break
        logger.debug("Fetched %s worklogs for %s", len(out), issue_key)
        return out

    def create_worklog(
        self,
        issue_key: str,
        time_spent_seconds: int,
        started: datetime,
        comment: str | None = None,
    ) -> dict[str, Any]:
        payload = self._worklog_payload(time_spent_seconds, started, comment)
        return self._request(
            "POST", f"issue/{issue_key}/worklog", payload=payload, context=f"Create worklog on {issue_key}"
        )

    def update_worklog(
        self,
        issue_key: str,
        worklog_id: str,
        time_spent_seconds: int,
        started: datetime,
        comment: str | None = None,
    ) -> dict[str, Any]:
        payload = self._worklog_payload(time_spent_seconds, started, comment)
        return self._request(
            "PUT",
            f"issue/{issue_key}/worklog/{worklog_id}",
            payload=payload,
            context=f"Update worklog {worklog_id} on {issue_key}",
        )

    def delete_worklog(self, issue_key: str, worklog_id: str) -> None:
        self._request(
            "DELETE", f"issue/{issue_key}/worklog/{worklog_id}", context=f"Delete worklog {worklog_id} on {issue_key}"
        )

    @staticmethod
    def _worklog_payload(time_spent_seconds: int, started: datetime, comment: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timeSpentSeconds": int(time_spent_seconds),
            "started": format_started(started),
        }
        if comment:
            payload["comment"] = text_to_adf(comment)
        return payload

    # ------------------ Projects ------------------
    def list_projects(self) -> list[tuple[str, str]]:
        """Return ``(key, name)`` pairs for every project the user can browse."""
        data = self._request("GET", "project", context="Project list") or []
        projects = [(p.get("key"), p.get("name") or p.get("key")) for p in data if isinstance(p, dict) and p.get("key")]
        return sorted(projects, key=lambda kv: kv[0])
