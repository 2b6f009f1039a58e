"""Mapping raw Jira JSON into domain models, and models into DataFrames."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime
from typing import Any

import pandas as pd

from .models import (
    DiscoveredIssue,
    Identity,
    IssueModel,
    UserProfile,
    WorklogModel,
    WorklogSearchResult,
)


def parse_dt(val) -> datetime | None:
    """Parse a Jira timestamp (e.g. ``2024-01-05T09:00:00.000+0000``) to aware UTC."""
    if not val:
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def adf_to_text(body) -> str:
    """Extract plain text from Atlassian Document Format (ADF) content.

    Worklog comments come back from REST v3 as ADF documents; older payloads
    and hand-written fixtures may carry a plain string instead.
    """
    if body is None:
        return ""

    if isinstance(body, str):
        stripped = body.strip()
        if stripped.startswith("{") and '"type"' in stripped:
            try:
                body = json.loads(stripped)
            except (json.JSONDecodeError, ValueError):
                return stripped
        else:
            return stripped

    if isinstance(body, dict):
        texts: list[str] = []
        if body.get("type") == "text" and "text" in body:
            texts.append(str(body["text"]))
        content = body.get("content")
        if isinstance(content, list):
            for item in content:
                extracted = adf_to_text(item)
                if extracted:
                    texts.append(extracted)
        return " ".join(texts)

    if isinstance(body, list):
        texts = []
        for item in body:
            extracted = adf_to_text(item)
            if extracted:
                texts.append(extracted)
        return " ".join(texts)

    return str(body)


def text_to_adf(text: str) -> dict[str, Any]:
    """Wrap plain text as a single-paragraph ADF document."""
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": text}],
            }
        ],
    }


def map_identity(raw: dict[str, Any] | None) -> Identity:
    raw = raw or {}
    return Identity(
        email=raw.get("emailAddress") or None,
        account_id=raw.get("accountId") or raw.get("key") or None,
        display_name=raw.get("displayName") or raw.get("name") or None,
    )


def map_user_profile(raw: dict[str, Any]) -> UserProfile:
    return UserProfile(
        identity=map_identity(raw),
        time_zone=raw.get("timeZone") or None,
        locale=raw.get("locale") or None,
        active=bool(raw.get("active", True)),
        raw=dict(raw),
    )


def map_issue(raw: dict[str, Any]) -> IssueModel:
    fields = raw.get("fields") or {}
    issuetype = fields.get("issuetype") or {}
    project = fields.get("project") or {}
    status = fields.get("status") or {}
    category = status.get("statusCategory") or {}
    assignee = fields.get("assignee") or {}
    return IssueModel(
        id=str(raw.get("id") or ""),
        key=raw.get("key") or "",
        summary=fields.get("summary"),
        issue_type=issuetype.get("name"),
        issue_type_icon=issuetype.get("iconUrl"),
        project_key=project.get("key"),
        project_name=project.get("name"),
        status=status.get("name"),
        status_category=category.get("name"),
        status_color=category.get("colorName"),
        assignee=assignee.get("displayName") if assignee else None,
        url=raw.get("self"),
    )


def map_discovered_issue(raw: dict[str, Any]) -> DiscoveredIssue:
    fields = raw.get("fields") or {}
    worklog_block = fields.get("worklog") or {}
    total = worklog_block.get("total")
    if not isinstance(total, int):
        # Summary missing: fall back to whatever entries are embedded
        embedded = worklog_block.get("worklogs") or []
        total = len(embedded) if isinstance(embedded, list) else 0
    return DiscoveredIssue(issue=map_issue(raw), worklog_total=total)


def map_worklog(raw: dict[str, Any], issue_id: str | None = None, fallback_id: str | None = None) -> WorklogModel:
    seconds = raw.get("timeSpentSeconds")
    try:
        seconds = int(seconds or 0)
    except (TypeError, ValueError):
        seconds = 0
    raw_issue_id = raw.get("issueId")
    return WorklogModel(
        id=str(raw.get("id") or fallback_id or ""),
        issue_id=str(issue_id or raw_issue_id) if (issue_id or raw_issue_id) else None,
        author=map_identity(raw.get("author")),
        started=parse_dt(raw.get("started")),
        time_spent_seconds=seconds,
        time_spent=raw.get("timeSpent"),
        comment=adf_to_text(raw.get("comment")) or None,
        created=parse_dt(raw.get("created")),
        updated=parse_dt(raw.get("updated")),
    )


def map_worklogs(
    raw_worklogs: Iterable[dict[str, Any]],
    id_prefix: str | None = None,
    offset: int = 0,
) -> list[WorklogModel]:
    """Map a page of worklogs.

    Entries without an ``id`` get ``<id_prefix>:<position>`` so they stay
    distinct in the merger; positions count from ``offset`` across pages.
    """
    out = []
    for pos, raw in enumerate(raw_worklogs, start=offset):
        if not isinstance(raw, dict):
            continue
        fallback = f"{id_prefix}:{pos}" if id_prefix else None
        out.append(map_worklog(raw, fallback_id=fallback))
    return out


WORKLOG_FRAME_COLUMNS = (
    "worklog_id",
    "issue_id",
    "issue_key",
    "summary",
    "project_key",
    "project_name",
    "issue_type",
    "status",
    "status_color",
    "author",
    "started",
    "time_spent_seconds",
    "hours",
    "time_spent",
    "comment",
)


def worklogs_to_dataframe(result: WorklogSearchResult) -> pd.DataFrame:
    """Flatten a search result into one row per worklog, issue fields joined in."""
    rows = []
    for wl, issue in result.with_issues():
        rows.append(
            {
                "worklog_id": wl.id,
                "issue_id": wl.issue_id,
                "issue_key": issue.key,
                "summary": issue.summary,
                "project_key": issue.project_key,
                "project_name": issue.project_name,
                "issue_type": issue.issue_type,
                "status": issue.status,
                "status_color": issue.status_color,
                "author": wl.author.label(),
                "started": wl.started,
                "time_spent_seconds": int(wl.time_spent_seconds),
                "hours": round(wl.time_spent_seconds / 3600.0, 2),
                "time_spent": wl.time_spent,
                "comment": wl.comment or "",
            }
        )
    if not rows:
        return pd.DataFrame(columns=list(WORKLOG_FRAME_COLUMNS))
    df = pd.DataFrame(rows, columns=list(WORKLOG_FRAME_COLUMNS))
    df["started"] = pd.to_datetime(df["started"], utc=True, errors="coerce")
    return df
