import json
import threading

import pytest

from worklog_app.core.errors import AuthError, DiscoveryError, FetchError
from worklog_app.core.jira_client import JiraAPI
from worklog_app.core.mappers import map_discovered_issue, map_user_profile, map_worklogs
from worklog_app.core.models import SearchRequest
from worklog_app.core.service import WorklogService

ME = {"emailAddress": "me@example.com", "accountId": "acc-me", "displayName": "Me", "timeZone": "Europe/Madrid"}
OTHER = {"emailAddress": "other@example.com", "accountId": "acc-other", "displayName": "Other"}


def _raw_issue(issue_id, key, total):
    return {
        "id": issue_id,
        "key": key,
        "fields": {
            "summary": f"Summary {key}",
            "issuetype": {"name": "Task"},
            "project": {"key": "PROJ", "name": "Project"},
            "status": {"name": "In Progress", "statusCategory": {"name": "In Progress", "colorName": "yellow"}},
            "worklog": {"total": total},
        },
    }


def _raw_worklog(wid, author, started, seconds=3600):
    return {"id": wid, "author": author, "started": started, "timeSpentSeconds": seconds, "timeSpent": "1h"}


class DummyAPI(JiraAPI):
    def __init__(self, issues=None, worklogs=None, fail_keys=(), myself_error=None, search_error=None):
        self.server = "https://example.atlassian.net"
        self.issues = issues or []
        self.worklogs = worklogs or {}
        self.fail_keys = set(fail_keys)
        self.myself_error = myself_error
        self.search_error = search_error
        self.fetched = []
        self.jql = None
        self._lock = threading.Lock()

    def myself(self):
        if self.myself_error:
            raise self.myself_error
        return map_user_profile(ME)

    def search_issues(self, jql, *, fields=None, max_results=50, start_at=0):
        self.jql = jql
        if self.search_error:
            raise self.search_error
        return [map_discovered_issue(raw) for raw in self.issues]

    def fetch_worklogs(self, issue_key):
        with self._lock:
            self.fetched.append(issue_key)
        if issue_key in self.fail_keys:
            raise FetchError("boom", issue_key=issue_key, status_code=500)
        return map_worklogs(self.worklogs.get(issue_key, []))


def _two_issue_api(**kwargs):
    return DummyAPI(
        issues=[_raw_issue("1", "PROJ-1", 2), _raw_issue("2", "PROJ-2", 1)],
        worklogs={
            "PROJ-1": [
                _raw_worklog("w1", ME, "2024-01-05T09:00:00.000+0000"),
                _raw_worklog("w3", OTHER, "2024-01-06T09:00:00.000+0000"),
            ],
            "PROJ-2": [_raw_worklog("w2", ME, "2024-01-10T14:00:00.000+0000", 1800)],
        },
        **kwargs,
    )


def test_search_end_to_end():
    api = _two_issue_api()
    svc = WorklogService(api)
    result = svc.search(SearchRequest(start_date="2024-01-01", end_date="2024-01-31"))
    assert [wl.id for wl in result.worklogs] == ["w2", "w1"]
    assert set(result.issues) == {"PROJ-1", "PROJ-2"}
    assert result.issue_for(result.worklogs[0]).key == "PROJ-2"
    assert result.total_seconds == 5400
    assert result.failed_issue_keys == ()
    assert api.jql.startswith("worklogAuthor = currentUser()")


def test_end_date_before_all_worklogs_yields_empty():
    svc = WorklogService(_two_issue_api())
    result = svc.search(SearchRequest(start_date="2023-12-01", end_date="2024-01-01"))
    assert result.worklogs == ()
    assert result.issues == {}


def _three_issue_api(**kwargs):
    return DummyAPI(
        issues=[_raw_issue("1", "PROJ-1", 1), _raw_issue("2", "PROJ-2", 1), _raw_issue("3", "PROJ-3", 1)],
        worklogs={
            "PROJ-1": [_raw_worklog("w1", ME, "2024-01-05T09:00:00.000+0000")],
            "PROJ-2": [_raw_worklog("w2", ME, "2024-01-10T14:00:00.000+0000")],
            "PROJ-3": [_raw_worklog("w4", ME, "2024-01-12T08:00:00.000+0000")],
        },
        **kwargs,
    )


def test_per_issue_failure_is_isolated():
    svc = WorklogService(_three_issue_api(fail_keys={"PROJ-2"}))
    result = svc.search(SearchRequest(start_date="2024-01-01", end_date="2024-01-31"))
    assert [wl.id for wl in result.worklogs] == ["w4", "w1"]
    assert set(result.issues) == {"PROJ-1", "PROJ-3"}
    assert result.failed_issue_keys == ("PROJ-2",)


def test_auth_failure_propagates_before_search():
    api = _two_issue_api(myself_error=AuthError("401", status_code=401))
    with pytest.raises(AuthError):
        WorklogService(api).search(SearchRequest())
    assert api.jql is None
    assert api.fetched == []


def test_discovery_failure_propagates():
    api = _two_issue_api(search_error=DiscoveryError("400", status_code=400))
    with pytest.raises(DiscoveryError):
        WorklogService(api).search(SearchRequest())
    assert api.fetched == []


def test_issue_without_worklog_hint_is_not_fetched():
    api = _two_issue_api()
    api.issues.append(_raw_issue("3", "PROJ-3", 0))
    WorklogService(api).search(SearchRequest(start_date="2024-01-01", end_date="2024-01-31"))
    assert sorted(api.fetched) == ["PROJ-1", "PROJ-2"]


def test_progress_union_equals_final_result():
    svc = WorklogService(_two_issue_api(), max_workers=2)
    seen_worklogs = []
    seen_issues = {}

    def on_progress(worklogs, issues):
        seen_worklogs.extend(worklogs)
        seen_issues.update(issues)

    result = svc.search(SearchRequest(start_date="2024-01-01", end_date="2024-01-31"), on_progress)
    assert {wl.id for wl in seen_worklogs} == {wl.id for wl in result.worklogs}
    assert set(seen_issues) == set(result.issues)


def test_status_callback_reports_fetch_progress():
    svc = WorklogService(_two_issue_api())
    calls = []
    svc.search(SearchRequest(start_date="2024-01-01"), status=lambda msg, cur, tot: calls.append((msg, cur, tot)))
    assert calls[-1] == ("Loading worklogs", 2, 2)


def test_empty_window_short_circuits():
    api = _two_issue_api()
    result = WorklogService(api).search(SearchRequest(start_date="2024-02-01", end_date="2024-01-01"))
    assert result.worklogs == ()
    assert api.jql is None


def test_no_candidates_yields_empty_result():
    api = DummyAPI(issues=[])
    result = WorklogService(api).search(SearchRequest())
    assert result.worklogs == ()
    assert result.issues == {}


class RecordingAPI(DummyAPI):
    def __init__(self):
        super().__init__()
        self.writes = []

    def create_worklog(self, issue_key, time_spent_seconds, started, comment=None):
        self.writes.append(("create", issue_key, time_spent_seconds, comment))
        return {"id": "new"}

    def update_worklog(self, issue_key, worklog_id, time_spent_seconds, started, comment=None):
        self.writes.append(("update", issue_key, worklog_id, time_spent_seconds))
        return {"id": worklog_id}

    def delete_worklog(self, issue_key, worklog_id):
        self.writes.append(("delete", issue_key, worklog_id))


def test_write_operations_pass_through():
    api = RecordingAPI()
    svc = WorklogService(api)
    wl = map_worklogs([_raw_worklog("w9", ME, "2024-01-05T09:00:00.000+0000")])[0]
    svc.log_work("PROJ-1", 600, wl.started, "note")
    svc.edit_work("PROJ-1", wl, 1200, wl.started)
    svc.delete_work("PROJ-1", wl)
    assert api.writes == [
        ("create", "PROJ-1", 600, "note"),
        ("update", "PROJ-1", "w9", 1200),
        ("delete", "PROJ-1", "w9"),
    ]


class _Response:
    def __init__(self, data):
        self.status_code = 200
        self._data = data
        self.text = json.dumps(data)

    def json(self):
        return self._data


class RoutedSession:
    """Fake HTTP session answering by URL suffix, safe for concurrent fetches."""

    def __init__(self, routes):
        self.routes = routes

    def request(self, method, url, **kwargs):
        for suffix, data in self.routes.items():
            if url.endswith(suffix):
                return _Response(data)
        raise AssertionError(f"unexpected request {method} {url}")


def _client_api(routes):
    api = JiraAPI.__new__(JiraAPI)
    api.server = "https://example.atlassian.net"
    api.client = type("Client", (), {"_session": RoutedSession(routes)})()
    api.rate_limiter = None
    api._user_cache = None
    api._user_lock = threading.Lock()
    return api


@pytest.mark.parametrize(
    "bad_payload",
    [
        {"total": 1, "worklogs": [_raw_worklog("w2", "bogus", "2024-01-10T14:00:00.000+0000")]},
        [{"id": "w2"}],
        {"total": 1, "worklogs": 42},
    ],
)
def test_malformed_worklog_payload_fails_only_that_issue(bad_payload):
    api = _client_api(
        {
            "/myself": ME,
            "/search/jql": {
                "issues": [_raw_issue("1", "PROJ-1", 1), _raw_issue("2", "PROJ-2", 1), _raw_issue("3", "PROJ-3", 1)],
                "isLast": True,
            },
            "/issue/PROJ-1/worklog": {"total": 1, "worklogs": [_raw_worklog("w1", ME, "2024-01-05T09:00:00.000+0000")]},
            "/issue/PROJ-2/worklog": bad_payload,
            "/issue/PROJ-3/worklog": {"total": 1, "worklogs": [_raw_worklog("w4", ME, "2024-01-12T08:00:00.000+0000")]},
        }
    )
    result = WorklogService(api).search(SearchRequest(start_date="2024-01-01", end_date="2024-01-31"))
    assert [wl.id for wl in result.worklogs] == ["w4", "w1"]
    assert set(result.issues) == {"PROJ-1", "PROJ-3"}
    assert result.failed_issue_keys == ("PROJ-2",)
