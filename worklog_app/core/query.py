"""JQL construction for worklog searches."""

from __future__ import annotations

from datetime import date

from .config import DEFAULT_DATE_RANGE_DAYS
from .models import SearchRequest

AUTHOR_CLAUSE = "worklogAuthor = currentUser()"


def quote_jql(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def project_scope(request: SearchRequest) -> list[str]:
    """Coalesce ``project_key`` and ``project_keys`` into one ordered key list.

    Both inputs together mean "any of these projects"; duplicates collapse.
    """
    keys: list[str] = []
    candidates = ([request.project_key] if request.project_key else []) + list(request.project_keys)
    for key in candidates:
        if key not in keys:
            keys.append(key)
    return keys


def build_worklog_jql(request: SearchRequest, *, today: date | None = None) -> str:
    """Translate a search request into JQL scoped to the current user's worklogs.

    Date bounds are UTC calendar days and inclusive. Without a start date the
    query falls back to a relative window (``-30d``) so the result set stays
    bounded. ``today`` is only used to render that fallback as a literal date,
    which keeps the query stable across a long session.
    """
    clauses = [AUTHOR_CLAUSE]

    if request.start_date is not None:
        clauses.append(f"worklogDate >= {quote_jql(request.start_date.isoformat())}")
    elif today is not None:
        lower = date.fromordinal(today.toordinal() - DEFAULT_DATE_RANGE_DAYS)
        clauses.append(f"worklogDate >= {quote_jql(lower.isoformat())}")
    else:
        clauses.append(f"worklogDate >= -{DEFAULT_DATE_RANGE_DAYS}d")

    if request.end_date is not None:
        clauses.append(f"worklogDate <= {quote_jql(request.end_date.isoformat())}")

    if request.issue_key:
        clauses.append(f"key = {quote_jql(request.issue_key)}")

    projects = project_scope(request)
    if len(projects) == 1:
        clauses.append(f"project = {quote_jql(projects[0])}")
    elif projects:
        joined = ", ".join(quote_jql(k) for k in projects)
        clauses.append(f"project IN ({joined})")

    return " AND ".join(clauses)
