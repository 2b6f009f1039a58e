from datetime import UTC, date, datetime

from worklog_app.core.filters import filter_worklogs, worklog_matches
from worklog_app.core.models import Identity, SearchRequest, WorklogModel

ME = Identity(email="me@example.com", account_id="acc-me", display_name="Me")
OTHER = Identity(email="other@example.com", account_id="acc-other", display_name="Other")


def _wl(wid, author, started, seconds=3600):
    return WorklogModel(id=wid, issue_id=None, author=author, started=started, time_spent_seconds=seconds)


def test_only_own_worklogs_survive():
    worklogs = [
        _wl("1", ME, datetime(2024, 1, 10, 9, tzinfo=UTC)),
        _wl("2", OTHER, datetime(2024, 1, 10, 10, tzinfo=UTC)),
    ]
    out = filter_worklogs(worklogs, ME, SearchRequest(), "100")
    assert [wl.id for wl in out] == ["1"]
    assert out[0].issue_id == "100"


def test_other_author_only_yields_nothing():
    worklogs = [_wl("2", OTHER, datetime(2024, 1, 10, tzinfo=UTC))]
    assert filter_worklogs(worklogs, ME, SearchRequest(), "100") == []


def test_day_bounds_are_inclusive_utc():
    req = SearchRequest(start_date="2024-01-10", end_date="2024-01-10")
    first = _wl("a", ME, datetime(2024, 1, 10, 0, 0, 0, tzinfo=UTC))
    last = _wl("b", ME, datetime(2024, 1, 10, 23, 59, 59, 999000, tzinfo=UTC))
    before = _wl("c", ME, datetime(2024, 1, 9, 23, 59, 59, tzinfo=UTC))
    after = _wl("d", ME, datetime(2024, 1, 11, 0, 0, 0, tzinfo=UTC))
    out = filter_worklogs([first, last, before, after], ME, req, "1")
    assert {wl.id for wl in out} == {"a", "b"}


def test_naive_started_treated_as_utc():
    wl = _wl("n", ME, datetime(2024, 1, 10, 12, 0))
    assert worklog_matches(wl, ME, date(2024, 1, 10), date(2024, 1, 10))


def test_missing_started_excluded_only_when_window_set():
    wl = _wl("x", ME, None)
    assert worklog_matches(wl, ME)
    assert not worklog_matches(wl, ME, date(2024, 1, 1), None)


def test_inverted_window_matches_nothing():
    req = SearchRequest(start_date="2024-02-01", end_date="2024-01-01")
    wl = _wl("1", ME, datetime(2024, 1, 15, tzinfo=UTC))
    assert filter_worklogs([wl], ME, req, "1") == []
