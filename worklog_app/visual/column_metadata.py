"""Central column metadata and helpers for table rendering."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import streamlit as st

# Mapping of raw column keys to (label, help text, format key)
# format key: "int" -> integer, "float2" -> 2 decimal float, "datetime" -> local timestamp,
# None -> default text column
COLUMN_METADATA: dict[str, tuple[str, str, str | None]] = {
    # Issue fields
    "summary": ("Summary", "Issue summary from Jira.", None),
    "project_key": ("Project", "Key of the project owning the issue.", None),
    "project_name": ("Project Name", "Name of the project owning the issue.", None),
    "issue_type": ("Type", "Jira issue type.", None),
    "status": ("Status", "Current Jira workflow status.", None),
    # Worklog fields
    "started": ("Started", "When the logged work started, in your timezone.", "datetime"),
    "started_local": ("Started", "When the logged work started, in your timezone.", "datetime"),
    "time_spent": ("Time Spent", "Logged duration.", None),
    "hours": ("Hours", "Logged duration in hours.", "float2"),
    "comment": ("Comment", "Worklog comment (plain text).", None),
    "time_spent_seconds": ("Seconds", "Logged duration in seconds.", "int"),
    # Totals
    "worklog_count": ("Worklogs", "Number of your worklogs on the issue in the window.", "int"),
    "issues": ("Issues", "Distinct issues with your worklogs in the window.", "int"),
}


def apply_column_metadata(
    columns: Iterable[str],
    existing: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return a column_config dictionary with human labels and hover help."""

    config: dict[str, Any] = dict(existing or {})
    for col in columns:
        if col in config:
            continue
        meta = COLUMN_METADATA.get(col)
        if not meta:
            continue
        label, help_text, fmt = meta
        if fmt == "int":
            config[col] = st.column_config.NumberColumn(label, help=help_text, format="%d")
        elif fmt == "float2":
            config[col] = st.column_config.NumberColumn(label, help=help_text, format="%.2f")
        elif fmt == "datetime":
            config[col] = st.column_config.DatetimeColumn(label, help=help_text, format="YYYY-MM-DD HH:mm")
        else:
            config[col] = st.column_config.Column(label, help=help_text)
    return config
