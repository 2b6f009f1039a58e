"""Per-worklog identity and date filtering.

Issue discovery filters *issues*; an issue can still carry worklogs from other
authors or outside the window, so every fetched worklog passes through here.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, date, datetime, time

from .models import Identity, SearchRequest, WorklogModel, same_identity


def day_start_utc(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def day_end_utc(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=UTC)


def worklog_matches(
    worklog: WorklogModel,
    identity: Identity,
    start_date: date | None = None,
    end_date: date | None = None,
) -> bool:
    if not same_identity(worklog.author, identity):
        return False
    if start_date is None and end_date is None:
        return True
    started = worklog.started
    if started is None:
        return False
    if started.tzinfo is None:
        started = started.replace(tzinfo=UTC)
    if start_date is not None and started < day_start_utc(start_date):
        return False
    if end_date is not None and started > day_end_utc(end_date):
        return False
    return True


def filter_worklogs(
    worklogs: Iterable[WorklogModel],
    identity: Identity,
    request: SearchRequest,
    issue_id: str,
) -> list[WorklogModel]:
    """Keep the requesting user's worklogs inside the window, stamped with ``issue_id``."""
    return [
        replace(wl, issue_id=issue_id)
        for wl in worklogs
        if worklog_matches(wl, identity, request.start_date, request.end_date)
    ]
