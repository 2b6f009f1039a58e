"""Progress banner and live preview for a worklog search in Streamlit."""

from __future__ import annotations

from collections.abc import Mapping

import pandas as pd
import streamlit as st

from worklog_app.analytics.timesheet import format_time_spent
from worklog_app.core.mappers import worklogs_to_dataframe
from worklog_app.core.merger import WorklogMerger
from worklog_app.core.models import IssueModel, WorklogModel, WorklogSearchResult

PREVIEW_COLUMNS = ["issue_key", "summary", "started", "time_spent", "comment"]


def preview_frame(result: WorklogSearchResult) -> pd.DataFrame:
    """Compact newest-first table of the worklogs found so far."""
    df = worklogs_to_dataframe(result)
    return df[PREVIEW_COLUMNS].rename(
        columns={"issue_key": "Issue", "summary": "Summary", "started": "Started", "time_spent": "Time", "comment": "Comment"}
    )


class SearchProgress:
    """Renders fetch progress while a search runs.

    ``status`` matches the ``WorklogService`` status callback and drives the
    bar; ``on_progress`` matches the merger progress callback and keeps a
    partial result, shown as a live table until the search settles.
    """

    def __init__(self, title: str):
        self._container = st.container()
        self._container.info(title)
        self._message = self._container.empty()
        self._bar = self._container.progress(0.0)
        self._tally = self._container.empty()
        self._preview = self._container.empty()
        self._partial = WorklogMerger()
        self._done = False

    def status(self, message: str, current: int | None = None, total: int | None = None) -> None:
        if self._done:
            return
        if total:
            self._message.write(f"{message} ({current or 0}/{total} issues)")
            self._bar.progress(min(max((current or 0) / total, 0.0), 1.0))
        else:
            self._message.write(message)

    def on_progress(self, worklogs: list[WorklogModel], issues: Mapping[str, IssueModel]) -> None:
        if self._done:
            return
        for issue in issues.values():
            self._partial.add([wl for wl in worklogs if wl.issue_id == issue.id], issue)
        snap = self.partial
        self._tally.caption(
            f"Found {len(snap.worklogs)} worklog(s) on {len(snap.issues)} issue(s) so far "
            f"({format_time_spent(snap.total_seconds)})"
        )
        self._preview.dataframe(preview_frame(snap), hide_index=True, width="stretch")

    @property
    def partial(self) -> WorklogSearchResult:
        return self._partial.snapshot()

    def complete(self, message: str) -> None:
        if self._done:
            return
        self._bar.progress(1.0)
        self._tally.empty()
        self._preview.empty()
        self._container.success(message)
        self._done = True

    def error(self, message: str) -> None:
        if self._done:
            return
        self._tally.empty()
        self._preview.empty()
        self._container.error(message)
        self._done = True
