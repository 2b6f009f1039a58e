"""Domain data models for identities, issues, worklogs, and search requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from .config import (
    DEFAULT_MAX_RESULTS,
    DEFAULT_START_AT,
    UNKNOWN_ISSUE_KEY,
    UNKNOWN_ISSUE_SUMMARY,
    UNKNOWN_PROJECT_KEY,
    UNKNOWN_PROJECT_NAME,
    UNKNOWN_STATUS,
    UNKNOWN_STATUS_COLOR,
)


@dataclass(frozen=True, slots=True, eq=False)
class Identity:
    """A Jira user as seen from either a profile or a worklog author record.

    Equality goes through :func:`same_identity`; display names are never used
    as a join key.
    """

    email: str | None = None
    account_id: str | None = None
    display_name: str | None = None

    @property
    def normalized_email(self) -> str | None:
        if not self.email:
            return None
        cleaned = self.email.strip().casefold()
        return cleaned or None

    def matches(self, other: Identity | None) -> bool:
        return same_identity(self, other)

    def label(self) -> str:
        return self.display_name or self.email or self.account_id or "Unknown"


def same_identity(a: Identity | None, b: Identity | None) -> bool:
    """Canonical identity comparison used by every filter site.

    Emails are compared case-insensitively when both sides carry one. When
    either email is hidden (Jira Cloud privacy settings), account ids are
    compared instead. Anything else never matches.
    """
    if a is None or b is None:
        return False
    email_a, email_b = a.normalized_email, b.normalized_email
    if email_a and email_b:
        return email_a == email_b
    if a.account_id and b.account_id:
        return a.account_id == b.account_id
    return False


@dataclass(slots=True)
class UserProfile:
    identity: Identity
    time_zone: str | None = None
    locale: str | None = None
    active: bool = True
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


def _coerce_date(value: date | datetime | str | None, name: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid {name}: {value!r} (expected YYYY-MM-DD)") from exc


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Immutable parameters of one worklog search.

    ``start_at`` offsets issue discovery, not worklogs. ``author`` is accepted
    for compatibility but inert: searches are always scoped to the current user.
    """

    start_date: date | None = None
    end_date: date | None = None
    issue_key: str | None = None
    project_key: str | None = None
    project_keys: tuple[str, ...] = ()
    author: str | None = None
    max_results: int = DEFAULT_MAX_RESULTS
    start_at: int = DEFAULT_START_AT

    def __post_init__(self):
        object.__setattr__(self, "start_date", _coerce_date(self.start_date, "start_date"))
        object.__setattr__(self, "end_date", _coerce_date(self.end_date, "end_date"))
        object.__setattr__(self, "issue_key", (self.issue_key or "").strip() or None)
        object.__setattr__(self, "project_key", (self.project_key or "").strip() or None)
        keys = tuple(k.strip() for k in (self.project_keys or ()) if k and k.strip())
        object.__setattr__(self, "project_keys", keys)

    @property
    def is_empty_window(self) -> bool:
        """True when both bounds are set and the window contains no day."""
        return self.start_date is not None and self.end_date is not None and self.start_date > self.end_date


@dataclass(slots=True)
class IssueModel:
    id: str
    key: str
    summary: str | None = None
    issue_type: str | None = None
    issue_type_icon: str | None = None
    project_key: str | None = None
    project_name: str | None = None
    status: str | None = None
    status_category: str | None = None
    status_color: str | None = None
    assignee: str | None = None
    url: str | None = None

    @property
    def is_unresolved(self) -> bool:
        return self.key == UNKNOWN_ISSUE_KEY


def unresolved_issue(issue_id: str | None) -> IssueModel:
    """Placeholder for a worklog whose parent issue is missing from discovery data."""
    return IssueModel(
        id=str(issue_id or ""),
        key=UNKNOWN_ISSUE_KEY,
        summary=UNKNOWN_ISSUE_SUMMARY,
        issue_type=UNKNOWN_STATUS,
        issue_type_icon="",
        project_key=UNKNOWN_PROJECT_KEY,
        project_name=UNKNOWN_PROJECT_NAME,
        status=UNKNOWN_STATUS,
        status_category=UNKNOWN_STATUS,
        status_color=UNKNOWN_STATUS_COLOR,
        assignee=None,
        url="",
    )


@dataclass(slots=True)
class DiscoveredIssue:
    issue: IssueModel
    # Advisory only: decides whether to fetch, never sizes the output
    worklog_total: int = 0


@dataclass(frozen=True, slots=True)
class WorklogModel:
    id: str
    issue_id: str | None
    author: Identity
    started: datetime | None
    time_spent_seconds: int = 0
    time_spent: str | None = None  # display only
    comment: str | None = None
    created: datetime | None = None
    updated: datetime | None = None


@dataclass(slots=True)
class WorklogSearchResult:
    worklogs: tuple[WorklogModel, ...] = ()
    issues: dict[str, IssueModel] = field(default_factory=dict)
    failed_issue_keys: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> WorklogSearchResult:
        return cls()

    def issue_for(self, worklog: WorklogModel) -> IssueModel:
        for issue in self.issues.values():
            if issue.id == worklog.issue_id:
                return issue
        return unresolved_issue(worklog.issue_id)

    def with_issues(self) -> list[tuple[WorklogModel, IssueModel]]:
        by_id = {issue.id: issue for issue in self.issues.values()}
        return [(wl, by_id.get(wl.issue_id) or unresolved_issue(wl.issue_id)) for wl in self.worklogs]

    @property
    def total_seconds(self) -> int:
        return sum(wl.time_spent_seconds for wl in self.worklogs)
