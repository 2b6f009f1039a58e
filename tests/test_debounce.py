import pytest

from worklog_app.core.debounce import SearchDebouncer
from worklog_app.core.errors import DiscoveryError
from worklog_app.core.models import SearchRequest, WorklogSearchResult


class FakeTimer:
    """Records scheduling instead of starting a thread; ``fire`` runs it."""

    created = []

    def __init__(self, delay, fn, args=()):
        self.delay = delay
        self.fn = fn
        self.args = args
        self.cancelled = False
        self.started = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.fn(*self.args)


@pytest.fixture(autouse=True)
def _reset_timers():
    FakeTimer.created = []


def _debouncer(search, results, errors=None, **kwargs):
    return SearchDebouncer(
        search,
        results.append,
        on_error=errors.append if errors is not None else None,
        delay=0.5,
        timer_factory=FakeTimer,
        **kwargs,
    )


def test_rapid_submits_collapse_to_last():
    calls = []
    results = []

    def search(request, on_progress):
        calls.append(request.issue_key)
        return WorklogSearchResult.empty()

    deb = _debouncer(search, results)
    deb.submit(SearchRequest(issue_key="A-1"))
    deb.submit(SearchRequest(issue_key="A-2"))
    deb.submit(SearchRequest(issue_key="A-3"))
    assert [t.cancelled for t in FakeTimer.created] == [True, True, False]
    assert FakeTimer.created[-1].delay == 0.5
    assert deb.pending
    for timer in FakeTimer.created:
        timer.fire()
    assert calls == ["A-3"]
    assert len(results) == 1
    assert not deb.pending


def test_submit_now_cancels_pending_and_runs_inline():
    results = []
    deb = _debouncer(lambda req, prog: WorklogSearchResult.empty(), results)
    deb.submit(SearchRequest())
    result = deb.submit_now(SearchRequest())
    assert FakeTimer.created[0].cancelled
    assert result is not None
    assert results == [result]


def test_superseded_search_result_and_progress_are_dropped():
    results = []
    progress = []
    deb = _debouncer(None, results)

    def slow_search(request, on_progress):
        on_progress(["first"], {})
        # a newer request arrives while this one is still running
        deb.submit(SearchRequest(issue_key="NEW-1"))
        on_progress(["late"], {})
        return WorklogSearchResult.empty()

    deb._search = slow_search
    out = deb.submit_now(SearchRequest(issue_key="OLD-1"), lambda wl, issues: progress.extend(wl))
    assert out is None
    assert results == []
    assert progress == ["first"]


def test_errors_routed_to_callback():
    results, errors = [], []

    def failing(request, on_progress):
        raise DiscoveryError("bad jql", status_code=400)

    deb = _debouncer(failing, results, errors)
    assert deb.submit_now(SearchRequest()) is None
    assert len(errors) == 1 and isinstance(errors[0], DiscoveryError)
    assert results == []


def test_errors_raise_without_callback():
    def failing(request, on_progress):
        raise DiscoveryError("bad jql")

    deb = _debouncer(failing, [])
    with pytest.raises(DiscoveryError):
        deb.submit_now(SearchRequest())


def test_stale_error_is_swallowed():
    errors = []
    deb = _debouncer(None, [], errors)

    def failing(request, on_progress):
        deb.submit(SearchRequest())
        raise DiscoveryError("late failure")

    deb._search = failing
    assert deb.submit_now(SearchRequest()) is None
    assert errors == []


def test_cancel_drops_pending_request():
    calls = []
    deb = _debouncer(lambda req, prog: calls.append(req) or WorklogSearchResult.empty(), [])
    deb.submit(SearchRequest())
    deb.cancel()
    FakeTimer.created[0].fire()
    assert calls == []
    assert not deb.pending
