"""My Worklogs page - the current user's logged time over a date window.

Searches run through the debounce shell so a newer search always wins over a
slower, older one; worklogs render progressively while per-issue fetches land.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta

import pandas as pd
import streamlit as st

from worklog_app.analytics.timesheet import format_time_spent, with_local_time
from worklog_app.app import register_page
from worklog_app.core.config import DEFAULT_DATE_RANGE_DAYS, DEFAULT_MAX_RESULTS, SETTINGS
from worklog_app.core.debounce import SearchDebouncer
from worklog_app.core.errors import AuthError, JiraClientError, WorklogAppError
from worklog_app.core.models import SearchRequest, WorklogSearchResult
from worklog_app.core.service import WorklogService
from worklog_app.features.worklog_view import build_worklog_context, resolve_timezone
from worklog_app.visual.charts import daily_hours_chart, project_share_chart
from worklog_app.visual.column_metadata import apply_column_metadata
from worklog_app.visual.progress import SearchProgress
from worklog_app.visual.tables import prepare_table

logger = logging.getLogger(__name__)

PAGE_KEY = "worklogs"


def _get_debouncer(service: WorklogService) -> SearchDebouncer:
    debouncer = st.session_state.get("worklog_debouncer")
    if debouncer is None:

        def on_result(result: WorklogSearchResult) -> None:
            st.session_state["worklog_result"] = result
            st.session_state.pop("worklog_error", None)

        def on_error(exc: WorklogAppError) -> None:
            if isinstance(exc, AuthError):
                service.api.clear_user_cache()
            st.session_state["worklog_result"] = WorklogSearchResult.empty()
            st.session_state["worklog_error"] = str(exc)

        def run_search(request, on_progress):
            return service.search(request, on_progress, status=st.session_state.get("worklog_status"))

        debouncer = SearchDebouncer(run_search, on_result, on_error=on_error)
        st.session_state["worklog_debouncer"] = debouncer
    return debouncer


def _project_options(service: WorklogService) -> dict[str, str]:
    if "worklog_projects" not in st.session_state:
        try:
            st.session_state["worklog_projects"] = dict(service.get_projects())
        except JiraClientError as exc:
            logger.warning("Failed to load projects: %s", exc)
            st.session_state["worklog_projects"] = {}
    return st.session_state["worklog_projects"]


def _render_table(df: pd.DataFrame, server: str, set_name: str, tz) -> None:
    if df.empty:
        st.info("No worklogs to show.")
        return
    local = with_local_time(df, tz) if "started" in df.columns else df
    key_col = "issue_key" if "issue_key" in local.columns else "key"
    prepared, display_cols, cfg = prepare_table(local, server, set_name, key_col=key_col)
    column_config = apply_column_metadata(display_cols, cfg)
    st.dataframe(
        prepared[display_cols].head(SETTINGS.max_table_rows),
        hide_index=True,
        width="stretch",
        column_config=column_config,
    )


def _render_log_work_form(service: WorklogService, tz) -> None:
    with st.expander("Log work"):
        with st.form(f"{PAGE_KEY}_log_work", clear_on_submit=True):
            issue_key = st.text_input("Issue key", placeholder="PROJ-123")
            col_d, col_t = st.columns(2)
            work_day = col_d.date_input("Date", value=date.today())
            work_time = col_t.time_input("Start time", value=time(9, 0))
            col_h, col_m = st.columns(2)
            hours = col_h.number_input("Hours", min_value=0, max_value=24, value=1, step=1)
            minutes = col_m.number_input("Minutes", min_value=0, max_value=59, value=0, step=5)
            comment = st.text_area("Comment", value="")
            submitted = st.form_submit_button("Log work")
        if submitted:
            seconds = int(hours) * 3600 + int(minutes) * 60
            if not issue_key.strip() or seconds <= 0:
                st.error("Issue key and a positive duration are required.")
                return
            started = tz.localize(datetime.combine(work_day, work_time))
            try:
                service.log_work(issue_key.strip(), seconds, started, comment.strip() or None)
            except JiraClientError as exc:
                st.error(f"Failed to log work: {exc}")
                return
            st.success(f"Logged {format_time_spent(seconds)} on {issue_key.strip()}. Search again to refresh.")


def _render_delete(service: WorklogService, result: WorklogSearchResult) -> None:
    if not result.worklogs:
        return
    with st.expander("Delete a worklog"):
        labels = {}
        for wl, issue in result.with_issues():
            when = wl.started.strftime("%Y-%m-%d %H:%M") if wl.started else "?"
            labels[f"{issue.key} · {when} · {format_time_spent(wl.time_spent_seconds)}"] = (issue, wl)
        choice = st.selectbox("Worklog", list(labels.keys()), key=f"{PAGE_KEY}_delete_choice")
        if st.button("Delete", key=f"{PAGE_KEY}_delete_btn"):
            issue, wl = labels[choice]
            try:
                service.delete_work(issue.key, wl)
            except JiraClientError as exc:
                st.error(f"Failed to delete worklog: {exc}")
                return
            st.success("Worklog deleted. Search again to refresh.")


@register_page("My Worklogs")
def worklogs_page():
    st.title("My Worklogs")
    service: WorklogService | None = st.session_state.get("worklog_service")
    if service is None:
        st.warning("Initialize connection on Setup page first.")
        return
    server = st.session_state.get("jira_server", "")

    try:
        profile = service.current_user()
    except AuthError as exc:
        service.api.clear_user_cache()
        st.error(f"Authentication failed, reconnect on the Setup page: {exc}")
        return
    tz = resolve_timezone(profile)
    st.caption(f"Signed in as {profile.identity.label()} · times shown in {tz.zone}")

    today = date.today()
    projects = _project_options(service)
    with st.form(f"{PAGE_KEY}_search"):
        col1, col2, col3 = st.columns([2, 1, 2])
        window = col1.date_input(
            "Date range",
            value=(today - timedelta(days=DEFAULT_DATE_RANGE_DAYS), today),
        )
        issue_key = col2.text_input("Issue key", value="")
        project_keys = col3.multiselect(
            "Projects",
            options=list(projects.keys()),
            format_func=lambda k: f"{k} - {projects.get(k, k)}",
        )
        max_results = st.number_input("Max issues", min_value=1, max_value=500, value=DEFAULT_MAX_RESULTS)
        search_btn = st.form_submit_button("Search", type="primary")

    if isinstance(window, tuple):
        # a half-picked range yields a single date
        start = window[0] if window else today
        end = window[1] if len(window) > 1 else start
    else:
        start = end = window

    if search_btn or "worklog_result" not in st.session_state:
        request = SearchRequest(
            start_date=start,
            end_date=end,
            issue_key=issue_key or None,
            project_keys=tuple(project_keys),
            max_results=int(max_results),
        )
        progress = SearchProgress("Fetching your worklogs")
        debouncer = _get_debouncer(service)
        st.session_state["worklog_status"] = progress.status
        try:
            result = debouncer.submit_now(request, progress.on_progress)
        finally:
            st.session_state.pop("worklog_status", None)
        if result is not None:
            progress.complete(f"Loaded {len(result.worklogs)} worklog(s).")
        elif st.session_state.get("worklog_error"):
            progress.error("Search failed.")

    error = st.session_state.get("worklog_error")
    if error:
        st.error(f"Failed to fetch worklogs. Please check your Jira configuration. ({error})")

    result: WorklogSearchResult = st.session_state.get("worklog_result", WorklogSearchResult.empty())
    ctx = build_worklog_context(result, tz, start, end)
    if ctx.failed_issue_keys:
        st.caption(f"Worklogs could not be loaded for: {', '.join(ctx.failed_issue_keys)}")

    cols = st.columns(3)
    cols[0].metric("Total Time", ctx.total_label, help="Sum of your logged time in the window.")
    cols[1].metric("Worklogs", ctx.worklog_count)
    cols[2].metric("Issues", ctx.issue_count)

    tab_days, tab_issues, tab_projects, tab_table = st.tabs(["By Day", "By Issue", "By Project", "Table"])
    with tab_days:
        chart = daily_hours_chart(ctx.daily_hours)
        if chart is not None:
            st.altair_chart(chart, width="stretch")
        if not ctx.daily_groups:
            st.info("No worklogs in the selected window.")
        for group in ctx.daily_groups:
            with st.expander(f"{group.date.strftime('%A, %B %d, %Y')} · {group.total_label}"):
                _render_table(group.worklogs, server, "worklog_list", tz)
    with tab_issues:
        _render_table(ctx.issue_totals, server, "issue_totals", tz)
    with tab_projects:
        chart = project_share_chart(ctx.project_totals)
        if chart is not None:
            st.altair_chart(chart, width="stretch")
        if not ctx.project_totals.empty:
            st.dataframe(ctx.project_totals, hide_index=True, width="stretch")
    with tab_table:
        _render_table(ctx.frame, server, "worklog_list", tz)
        if not ctx.frame.empty:
            csv = ctx.frame.to_csv(index=False).encode(SETTINGS.download_encoding)
            st.download_button(
                "Download Worklogs CSV",
                data=csv,
                file_name=f"worklogs_{start}_{end}.csv",
                mime="text/csv",
            )

    _render_log_work_form(service, tz)
    _render_delete(service, result)
