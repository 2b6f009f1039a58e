"""Timesheet aggregations over the flattened worklog DataFrame."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

import pandas as pd
import pytz


def format_time_spent(seconds) -> str:
    """Render seconds as ``45m``, ``2h`` or ``1h 30m``."""
    try:
        seconds = int(seconds or 0)
    except (TypeError, ValueError):
        seconds = 0
    hours, rem = divmod(max(seconds, 0), 3600)
    minutes = rem // 60
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def total_time_spent(df: pd.DataFrame) -> int:
    if df.empty or "time_spent_seconds" not in df.columns:
        return 0
    return int(pd.to_numeric(df["time_spent_seconds"], errors="coerce").fillna(0).sum())


def with_local_time(df: pd.DataFrame, tz: pytz.BaseTzInfo | str) -> pd.DataFrame:
    """Add ``started_local`` and ``date`` columns in the display timezone."""
    if isinstance(tz, str):
        tz = pytz.timezone(tz)
    out = df.copy()
    started = pd.to_datetime(out.get("started"), utc=True, errors="coerce")
    out["started_local"] = started.dt.tz_convert(tz)
    out["date"] = out["started_local"].dt.date
    return out


@dataclass(slots=True)
class DailyGroup:
    date: date
    total_seconds: int
    worklogs: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def total_label(self) -> str:
        return format_time_spent(self.total_seconds)


def group_by_date(df: pd.DataFrame, tz: pytz.BaseTzInfo | str) -> list[DailyGroup]:
    """Group worklogs by local calendar day, newest day first.

    Rows within each day are ordered newest first as well.
    """
    if df.empty:
        return []
    local = with_local_time(df, tz)
    local = local[local["date"].notna()]
    groups: list[DailyGroup] = []
    for day, group in local.groupby("date"):
        ordered = group.sort_values("started_local", ascending=False, kind="stable")
        groups.append(DailyGroup(date=day, total_seconds=total_time_spent(ordered), worklogs=ordered))
    groups.sort(key=lambda g: g.date, reverse=True)
    return groups


def issue_totals(df: pd.DataFrame) -> pd.DataFrame:
    """Per-issue worklog count and time, largest first."""
    if df.empty:
        return pd.DataFrame(columns=["key", "summary", "project_key", "worklog_count", "time_spent_seconds"])
    grouped = (
        df.groupby(["issue_key", "summary", "project_key"], dropna=False)
        .agg(worklog_count=("worklog_id", "count"), time_spent_seconds=("time_spent_seconds", "sum"))
        .reset_index()
        .rename(columns={"issue_key": "key"})
    )
    grouped["hours"] = (grouped["time_spent_seconds"] / 3600.0).round(2)
    grouped["time_spent"] = grouped["time_spent_seconds"].apply(format_time_spent)
    return grouped.sort_values(["time_spent_seconds", "key"], ascending=[False, True]).reset_index(drop=True)


def project_totals(df: pd.DataFrame) -> pd.DataFrame:
    """Per-project time, largest first."""
    if df.empty:
        return pd.DataFrame(columns=["project_key", "project_name", "time_spent_seconds", "hours"])
    grouped = (
        df.groupby(["project_key", "project_name"], dropna=False)
        .agg(time_spent_seconds=("time_spent_seconds", "sum"), issues=("issue_key", "nunique"))
        .reset_index()
    )
    grouped["hours"] = (grouped["time_spent_seconds"] / 3600.0).round(2)
    return grouped.sort_values("time_spent_seconds", ascending=False).reset_index(drop=True)


def daily_hours(df: pd.DataFrame, tz: pytz.BaseTzInfo | str, start: date, end: date) -> pd.DataFrame:
    """Hours per local day across ``start..end``, zero-filled."""
    all_dates = pd.date_range(start, end, freq="D")
    frame = pd.DataFrame({"date": all_dates})
    if df.empty or start > end:
        frame["hours"] = 0.0
        return frame
    local = with_local_time(df, tz)
    agg = local.groupby("date")["time_spent_seconds"].sum().reset_index()
    agg["date"] = pd.to_datetime(agg["date"])
    frame = frame.merge(agg, on="date", how="left")
    frame["hours"] = (frame["time_spent_seconds"].fillna(0) / 3600.0).round(2)
    return frame[["date", "hours"]]
