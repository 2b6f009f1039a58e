"""Running, de-duplicated, time-sorted accumulation of filtered worklogs."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime

from .models import IssueModel, WorklogModel, WorklogSearchResult, unresolved_issue

ProgressCallback = Callable[[list[WorklogModel], Mapping[str, IssueModel]], None]

_OLDEST = datetime.min.replace(tzinfo=UTC)


def started_sort_key(worklog: WorklogModel) -> datetime:
    started = worklog.started
    if started is None:
        return _OLDEST
    if started.tzinfo is None:
        return started.replace(tzinfo=UTC)
    return started


def sort_worklogs(worklogs: Iterable[WorklogModel]) -> list[WorklogModel]:
    """Newest first; ties keep their arrival order."""
    return sorted(worklogs, key=started_sort_key, reverse=True)


class WorklogMerger:
    """Accumulates per-issue batches for a single search.

    ``add`` is idempotent by worklog id, so replaying a batch never duplicates
    entries. Fan-out completions arrive on worker threads, hence the lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._worklogs: list[WorklogModel] = []
        self._seen_ids: set[str] = set()
        self._issues_by_key: dict[str, IssueModel] = {}
        self._issues_by_id: dict[str, IssueModel] = {}
        self._failed: list[str] = []

    def add(self, worklogs: Iterable[WorklogModel], issue: IssueModel | None = None) -> list[WorklogModel]:
        """Merge a batch; returns only the worklogs not seen before."""
        with self._lock:
            added: list[WorklogModel] = []
            for wl in worklogs:
                if wl.id in self._seen_ids:
                    continue
                self._seen_ids.add(wl.id)
                added.append(wl)
            if not added:
                return []
            if issue is not None:
                self._issues_by_key[issue.key] = issue
                if issue.id:
                    self._issues_by_id[issue.id] = issue
            self._worklogs = sort_worklogs(self._worklogs + added)
            return added

    def mark_failed(self, issue_key: str) -> None:
        with self._lock:
            if issue_key not in self._failed:
                self._failed.append(issue_key)

    def resolve_issue(self, worklog: WorklogModel) -> IssueModel:
        with self._lock:
            issue = self._issues_by_id.get(worklog.issue_id or "")
        return issue or unresolved_issue(worklog.issue_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._worklogs)

    def snapshot(self) -> WorklogSearchResult:
        with self._lock:
            return WorklogSearchResult(
                worklogs=tuple(self._worklogs),
                issues=dict(self._issues_by_key),
                failed_issue_keys=tuple(self._failed),
            )
