import pandas as pd

from worklog_app.visual.column_metadata import apply_column_metadata
from worklog_app.visual.tables import add_ticket_link, prepare_table


def test_ticket_link_skips_placeholder_keys():
    df = pd.DataFrame({"issue_key": ["PROJ-1", "UNKNOWN"]})
    out, cfg = add_ticket_link(df, "https://example.atlassian.net/")
    assert list(out["Ticket"]) == ["https://example.atlassian.net/browse/PROJ-1", ""]
    assert "Ticket" in cfg


def test_prepare_table_orders_by_column_set():
    df = pd.DataFrame(
        {
            "issue_key": ["PROJ-1"],
            "summary": ["S"],
            "time_spent": ["1h"],
            "hours": [1.0],
            "worklog_id": ["1"],
        }
    )
    _, cols, cfg = prepare_table(df, "https://example.atlassian.net", "worklog_list")
    assert cols == ["Ticket", "summary", "time_spent", "hours"]
    config = apply_column_metadata(cols, cfg)
    assert set(config) == {"Ticket", "summary", "time_spent", "hours"}
