"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``worklog_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from worklog_app.app import main

st.set_page_config(layout="wide")

logger = logging.getLogger(__name__)


def _auto_init_worklog_service():
    """Initialize the worklog service from Streamlit secrets if available."""
    if "worklog_service" in st.session_state:
        return

    # Try to get secrets from a [jira] section, fall back to top-level
    jira_secrets = st.secrets.get("jira", {})
    server = jira_secrets.get("JIRA_SERVER") or st.secrets.get("JIRA_SERVER")
    email = jira_secrets.get("JIRA_EMAIL") or st.secrets.get("JIRA_EMAIL")
    token = (
        jira_secrets.get("JIRA_API_TOKEN")
        or st.secrets.get("JIRA_API_TOKEN")
        or jira_secrets.get("JIRA_TOKEN")
        or st.secrets.get("JIRA_TOKEN")
    )

    if server and email and token:
        from worklog_app.core.errors import WorklogAppError
        from worklog_app.pages.setup import connect

        try:
            service = connect(server, email, token)
        except WorklogAppError as e:
            st.sidebar.error(f"Jira connection failed: {e}")
            st.session_state.pop("worklog_service", None)
            return
        st.session_state["jira_server"] = server.rstrip("/")
        st.session_state["jira_email"] = email
        st.session_state["worklog_service"] = service
        st.sidebar.success(f"Connected as {service.current_user().identity.label()}")
    else:
        st.sidebar.warning("Jira secrets not found. Please use the Setup page.")


PAGES_DIR = Path(__file__).parent / "worklog_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"worklog_app.pages.{py.stem}"
    try:
        import_module(mod_name)
    except Exception as e:  # pragma: no cover
        logger.error("Failed importing page %s: %s", mod_name, e)

_auto_init_worklog_service()

if __name__ == "__main__":
    main()
