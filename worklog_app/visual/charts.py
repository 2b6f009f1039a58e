"""Chart builders (Altair) for logged time."""

from __future__ import annotations

import altair as alt
import pandas as pd


def daily_hours_chart(hours: pd.DataFrame):
    """Bar chart of logged hours per day with weekend shading."""
    if hours is None or hours.empty:
        return None
    chart_df = hours.copy()
    chart_df["date"] = pd.to_datetime(chart_df["date"])

    bars = (
        alt.Chart(chart_df)
        .mark_bar(color="#1f77b4")
        .encode(
            x=alt.X("date:T", title="Date"),
            y=alt.Y("hours:Q", title="Hours Logged"),
            tooltip=[
                alt.Tooltip("date:T", title="Date"),
                alt.Tooltip("hours:Q", title="Hours", format=".2f"),
            ],
        )
    )

    shading = alt.Chart(pd.DataFrame()).mark_rect()  # default empty rect
    unique_dates = chart_df[["date"]].drop_duplicates()
    unique_dates = unique_dates.assign(weekday=unique_dates["date"].dt.weekday)
    weekend = unique_dates[unique_dates["weekday"].isin([5, 6])].copy()
    if not weekend.empty:
        weekend = weekend.assign(date_end=weekend["date"] + pd.Timedelta(days=1))
        shading = alt.Chart(weekend).mark_rect(color="#f2f2f2").encode(x="date:T", x2="date_end:T")

    return (shading + bars).properties(height=260)


def project_share_chart(totals: pd.DataFrame):
    """Donut of logged hours per project."""
    if totals is None or totals.empty:
        return None
    chart_df = totals.copy()
    chart_df["project_key"] = chart_df["project_key"].fillna("UNKNOWN").astype(str)
    return (
        alt.Chart(chart_df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("hours:Q"),
            color=alt.Color("project_key:N", title="Project", legend=alt.Legend(orient="bottom")),
            tooltip=[
                alt.Tooltip("project_key:N", title="Project"),
                alt.Tooltip("project_name:N", title="Name"),
                alt.Tooltip("hours:Q", title="Hours", format=".2f"),
            ],
        )
        .properties(height=260)
    )
