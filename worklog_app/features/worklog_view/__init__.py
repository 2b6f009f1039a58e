"""My Worklogs feature module."""

from worklog_app.features.worklog_view.context import (
    WorklogViewContext,
    build_worklog_context,
    resolve_timezone,
)

__all__ = [
    "WorklogViewContext",
    "build_worklog_context",
    "resolve_timezone",
]
