"""Pure helpers to build the My Worklogs page context (no Streamlit)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

import pandas as pd
import pytz

from worklog_app.analytics.timesheet import (
    DailyGroup,
    daily_hours,
    format_time_spent,
    group_by_date,
    issue_totals,
    project_totals,
    total_time_spent,
)
from worklog_app.core.config import TIMEZONE
from worklog_app.core.mappers import worklogs_to_dataframe
from worklog_app.core.models import UserProfile, WorklogSearchResult


@dataclass(slots=True)
class WorklogViewContext:
    """Context data for the My Worklogs page."""

    frame: pd.DataFrame
    daily_groups: list[DailyGroup] = field(default_factory=list)
    issue_totals: pd.DataFrame = field(default_factory=pd.DataFrame)
    project_totals: pd.DataFrame = field(default_factory=pd.DataFrame)
    daily_hours: pd.DataFrame = field(default_factory=pd.DataFrame)
    total_seconds: int = 0
    worklog_count: int = 0
    issue_count: int = 0
    failed_issue_keys: tuple[str, ...] = ()

    @property
    def total_label(self) -> str:
        return format_time_spent(self.total_seconds)


def resolve_timezone(profile: UserProfile | None) -> pytz.BaseTzInfo:
    """Display timezone: the Jira profile's, else the configured fallback."""
    name = profile.time_zone if profile is not None else None
    if name:
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            pass
    return pytz.timezone(TIMEZONE)


def build_worklog_context(
    result: WorklogSearchResult,
    tz: pytz.BaseTzInfo | None = None,
    start: date | None = None,
    end: date | None = None,
) -> WorklogViewContext:
    """Build context for the My Worklogs page.

    Parameters
    ----------
    result : WorklogSearchResult
        Final (or partial) search result.
    tz : timezone, optional
        Display timezone for day grouping. Defaults to the configured one.
    start, end : date, optional
        Window used for the zero-filled daily hours series.
    """
    tz = tz or pytz.timezone(TIMEZONE)
    frame = worklogs_to_dataframe(result)
    if frame.empty:
        return WorklogViewContext(frame=frame, failed_issue_keys=tuple(result.failed_issue_keys))

    hours = pd.DataFrame()
    if start is not None and end is not None:
        hours = daily_hours(frame, tz, start, end)

    return WorklogViewContext(
        frame=frame,
        daily_groups=group_by_date(frame, tz),
        issue_totals=issue_totals(frame),
        project_totals=project_totals(frame),
        daily_hours=hours,
        total_seconds=total_time_spent(frame),
        worklog_count=len(frame),
        issue_count=int(frame["issue_key"].nunique()),
        failed_issue_keys=tuple(result.failed_issue_keys),
    )
