"""WorklogService: orchestrates discovery, worklog fan-out, filtering, and merging."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime

from .config import ISSUE_SEARCH_FIELDS, WORKLOG_FETCH_MAX_WORKERS
from .errors import FetchError
from .filters import filter_worklogs
from .jira_client import JiraAPI
from .merger import ProgressCallback, WorklogMerger
from .models import DiscoveredIssue, SearchRequest, UserProfile, WorklogModel, WorklogSearchResult
from .query import build_worklog_jql

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str, int | None, int | None], None]


class WorklogService:
    def __init__(self, api: JiraAPI, max_workers: int = WORKLOG_FETCH_MAX_WORKERS):
        self.api = api
        self.max_workers = max(1, int(max_workers))

    def current_user(self) -> UserProfile:
        return self.api.myself()

    def get_projects(self) -> list[tuple[str, str]]:
        """Fetch ``(key, name)`` pairs for the project picker."""
        return self.api.list_projects()

    # ------------------ Search ------------------
    def search(
        self,
        request: SearchRequest,
        on_progress: ProgressCallback | None = None,
        *,
        status: StatusCallback | None = None,
    ) -> WorklogSearchResult:
        """Run one worklog search for the authenticated user.

        ``on_progress(new_worklogs, {issue_key: issue})`` fires once per issue
        batch that added worklogs, in fetch completion order. The returned
        result holds exactly the union of those batches, newest first.

        Raises ``AuthError`` or ``DiscoveryError``; per-issue ``FetchError`` is
        logged and that issue contributes nothing.
        """
        if status:
            status("Identifying current user", None, None)
        profile = self.api.myself()
        identity = profile.identity

        if request.is_empty_window:
            logger.info("Empty date window %s > %s; skipping search", request.start_date, request.end_date)
            return WorklogSearchResult.empty()

        jql = build_worklog_jql(request)
        if status:
            status("Searching issues with your worklogs", None, None)
        discovered = self.api.search_issues(
            jql,
            fields=list(ISSUE_SEARCH_FIELDS),
            max_results=request.max_results,
            start_at=request.start_at,
        )
        candidates = [d for d in discovered if d.worklog_total > 0]
        logger.debug("Discovered %s issues, %s with worklogs (jql=%s)", len(discovered), len(candidates), jql)

        merger = WorklogMerger()
        if candidates:
            self._fan_out(candidates, merger, identity, request, on_progress, status)

        result = merger.snapshot()
        logger.info(
            "Worklog search settled: %s worklogs across %s issues (%s fetch failures)",
            len(result.worklogs),
            len(result.issues),
            len(result.failed_issue_keys),
        )
        return result

    def _fan_out(
        self,
        candidates: list[DiscoveredIssue],
        merger: WorklogMerger,
        identity,
        request: SearchRequest,
        on_progress: ProgressCallback | None,
        status: StatusCallback | None,
    ) -> None:
        total = len(candidates)
        if status:
            status("Loading worklogs", 0, total)
        completed = 0
        workers = min(self.max_workers, total)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(self.api.fetch_worklogs, d.issue.key): d for d in candidates}
            for fut in as_completed(futures):
                discovered = futures[fut]
                issue = discovered.issue
                completed += 1
                try:
                    fetched = fut.result()
                except FetchError as exc:
                    logger.warning("Failed to fetch worklogs for issue %s: %s", issue.key, exc)
                    merger.mark_failed(issue.key)
                    fetched = []
                mine = filter_worklogs(fetched, identity, request, issue.id)
                added = merger.add(mine, issue)
                if added and on_progress:
                    on_progress(added, {issue.key: issue})
                if status:
                    status("Loading worklogs", completed, total)

    # ------------------ Write pass-through ------------------
    def log_work(
        self,
        issue_key: str,
        time_spent_seconds: int,
        started: datetime,
        comment: str | None = None,
    ) -> dict:
        return self.api.create_worklog(issue_key, time_spent_seconds, started, comment)

    def edit_work(
        self,
        issue_key: str,
        worklog: WorklogModel,
        time_spent_seconds: int,
        started: datetime,
        comment: str | None = None,
    ) -> dict:
        return self.api.update_worklog(issue_key, worklog.id, time_spent_seconds, started, comment)

    def delete_work(self, issue_key: str, worklog: WorklogModel) -> None:
        self.api.delete_worklog(issue_key, worklog.id)
