"""Connection setup page: collect Jira credentials and initialize WorklogService."""

from __future__ import annotations

import streamlit as st

from worklog_app.app import register_page
from worklog_app.core.config import JIRA_DEFAULT_SERVER
from worklog_app.core.errors import AuthError
from worklog_app.core.jira_client import JiraAPI
from worklog_app.core.rate_limit import RequestRateLimiter
from worklog_app.core.service import WorklogService

SESSION_KEYS = ("worklog_service", "worklog_debouncer", "worklog_result", "worklog_projects", "worklog_error")


def connect(server: str, email: str, token: str, cooldown: float | None = None) -> WorklogService:
    """Build the service and verify the credentials with a current-user lookup."""
    if cooldown is None:
        limiter = RequestRateLimiter()
    else:
        limiter = RequestRateLimiter(cooldown=cooldown) if cooldown > 0 else None
    api = JiraAPI(server, email, token, rate_limiter=limiter)
    service = WorklogService(api)
    service.current_user()
    return service


def disconnect() -> None:
    service = st.session_state.get("worklog_service")
    if service is not None:
        service.api.clear_user_cache()
    for key in SESSION_KEYS:
        st.session_state.pop(key, None)


@register_page("Setup / Connection")
def setup_page():
    st.title("Jira Connection Setup")
    st.caption("Enter your Jira Cloud site, email and API token (use secrets in production).")

    jira_secrets = st.secrets.get("jira", {})
    secret_server = jira_secrets.get("JIRA_SERVER") or st.secrets.get("JIRA_SERVER")
    secret_email = jira_secrets.get("JIRA_EMAIL") or st.secrets.get("JIRA_EMAIL")
    secret_token = jira_secrets.get("JIRA_API_TOKEN") or st.secrets.get("JIRA_API_TOKEN")

    server = st.text_input(
        "Jira Site URL",
        value=st.session_state.get("jira_server") or secret_server or "",
        placeholder=JIRA_DEFAULT_SERVER,
    )
    email = st.text_input(
        "Email",
        value=st.session_state.get("jira_email") or secret_email or "",
    )
    token = st.text_input(
        "API Token",
        type="password",
        value=secret_token or "",
    )
    cooldown = st.number_input(
        "Per-issue request cooldown (seconds)", min_value=0.0, max_value=10.0, value=1.0, step=0.5
    )
    col_connect, col_logout = st.columns(2)
    init_btn = col_connect.button("Connect", type="primary")
    logout_btn = col_logout.button("Log out")

    if logout_btn:
        disconnect()
        st.info("Disconnected.")
        return

    if init_btn:
        if not (server and email and token):
            st.error("All fields required.")
            return
        disconnect()
        try:
            service = connect(server, email, token, cooldown=float(cooldown))
        except AuthError as exc:
            st.error(f"Authentication failed: {exc}")
            return
        except Exception as exc:  # pragma: no cover
            st.error(f"Failed to initialize Jira client: {exc}")
            return
        st.session_state["jira_server"] = server.rstrip("/")
        st.session_state["jira_email"] = email
        st.session_state["worklog_service"] = service
        st.success(f"Connected as {service.current_user().identity.label()}.")

    if "worklog_service" in st.session_state:
        st.info("WorklogService ready. Open **My Worklogs**.")
