"""Reusable table helpers for Streamlit rendering."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from worklog_app.core.column_config import get_columns


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "issue_key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    base = server.rstrip("/")
    out[label] = out[key_col].astype(str).apply(
        lambda k: f"{base}/browse/{k}" if k and k not in {"nan", "None", "UNKNOWN"} else ""
    )
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"browse/(.*)$",
            help="Open in Jira",
            width="small",
        )
    }
    return out, cfg


def prepare_table(
    df: pd.DataFrame,
    server: str,
    set_name: str,
    *,
    key_col: str = "issue_key",
) -> tuple[pd.DataFrame, list[str], dict[str, object]]:
    if df.empty:
        return df, [], {}

    table, cfg = add_ticket_link(df, server, key_col=key_col)
    canonical = get_columns(set_name) or []
    display_cols: list[str] = [col for col in canonical if col in table.columns]

    if "Ticket" in table.columns and "Ticket" not in display_cols:
        display_cols.insert(0, "Ticket")

    if not display_cols:
        display_cols = [col for col in table.columns if col != key_col]

    return table, display_cols, cfg
