"""Central configuration, constants, tuning knobs, and shared column definitions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# Jira Connection Settings
# =============================================================================
JIRA_DEFAULT_SERVER = "https://your-domain.atlassian.net"
JIRA_REST_API_VERSION = "3"
# Fallback display timezone when the Jira profile does not carry one
TIMEZONE = "UTC"

# =============================================================================
# Search Defaults
# =============================================================================
DEFAULT_DATE_RANGE_DAYS: int = 30  # Default lookback when no start date is given
DEFAULT_MAX_RESULTS: int = 50  # Issue discovery page size
DEFAULT_START_AT: int = 0

# Fields requested from the issue search; "worklog" carries the count hint
ISSUE_SEARCH_FIELDS: Sequence[str] = (
    "key",
    "summary",
    "issuetype",
    "project",
    "status",
    "assignee",
    "worklog",
)

# =============================================================================
# Fan-out / Debounce Tuning
# =============================================================================
# Threads because the jira client is synchronous and the calls are I/O bound.
# Every fetch is submitted up front; this only bounds the worker threads.
WORKLOG_FETCH_MAX_WORKERS = 8
WORKLOG_PAGE_SIZE = 100
DEBOUNCE_SECONDS = 0.5

# Per-issue request cooldown (see core.rate_limit)
RATE_LIMIT_COOLDOWN_SECONDS = 1.0
RATE_LIMIT_TTL_SECONDS = 300.0

# Jira expects worklog "started" with millisecond precision and a +hhmm offset
JIRA_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.000%z"

# =============================================================================
# Placeholder values for worklogs whose issue could not be resolved
# =============================================================================
UNKNOWN_ISSUE_KEY = "UNKNOWN"
UNKNOWN_ISSUE_SUMMARY = "Unknown Issue"
UNKNOWN_PROJECT_KEY = "UNKNOWN"
UNKNOWN_PROJECT_NAME = "Unknown Project"
UNKNOWN_STATUS = "Unknown"
UNKNOWN_STATUS_COLOR = "gray"

# =============================================================================
# Table Columns
# =============================================================================
WORKLOG_CORE_COLUMNS: Sequence[str] = (
    "worklog_id",
    "issue_key",
    "summary",
    "project_key",
    "project_name",
    "issue_type",
    "status",
    "started",
    "time_spent_seconds",
    "hours",
    "time_spent",
    "comment",
)

DISPLAY_ORDER_WORKLOG_LIST: Sequence[str] = (
    "Ticket",
    "summary",
    "started",
    "time_spent",
    "hours",
    "comment",
    "project_key",
    "issue_type",
    "status",
)

DISPLAY_ORDER_ISSUE_TOTALS: Sequence[str] = (
    "Ticket",
    "summary",
    "project_key",
    "worklog_count",
    "hours",
    "time_spent",
)


@dataclass(slots=True)
class AppSettings:
    max_table_rows: int = 1000
    download_encoding: str = "utf-8"


SETTINGS = AppSettings()
