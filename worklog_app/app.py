"""Application entry point: page registry and router."""

from __future__ import annotations

import streamlit as st

PAGES = {}


def register_page(label):
    def decorator(func):
        PAGES[label] = func
        return func

    return decorator


def main():
    st.sidebar.title("Worklog Dashboard")
    pages = list(PAGES.keys())
    if not pages:
        st.write("No pages registered yet.")
        return
    preferred_order = [
        "My Worklogs",
        "Setup / Connection",
    ]

    ordered = [name for name in preferred_order if name in pages]
    trailing = sorted(name for name in pages if name not in preferred_order)
    pages = ordered + trailing

    # If setup exists and no worklog_service yet, default to setup page
    if "Setup / Connection" in pages and "worklog_service" not in st.session_state:
        default = pages.index("Setup / Connection")
    else:
        default = 0
    page = st.sidebar.selectbox("Page", pages, index=default)
    if "worklog_service" in st.session_state:
        st.sidebar.caption(f"Connected to {st.session_state.get('jira_server', 'Jira')} as {st.session_state.get('jira_email', '?')}")
    PAGES[page]()


if __name__ == "__main__":
    main()
