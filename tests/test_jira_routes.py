import pytest
from fastapi.testclient import TestClient

from jira_mediator.api.main import app
from jira_mediator.clients.jira_client import JiraClient
from jira_mediator.clients.transport import JiraTransport, TransportResult
from jira_mediator.core.errors import InvalidTransition, NotFound, RemoteRejected
from jira_mediator.models.jira import SearchPage, Transition

client = TestClient(app)
HEADERS = {"X-API-Key": "test-key"}


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    async def fake_open(self):  # noqa: D401
        return None

    async def fake_close(self):
        return None

    monkeypatch.setattr(JiraClient, "open", fake_open)
    monkeypatch.setattr(JiraClient, "close", fake_close)


def test_get_issue(monkeypatch):
    async def fake_get_issue(self, key):
        return {"id": "101", "key": key, "fields": {"summary": "Test"}}

    monkeypatch.setattr(JiraClient, "get_issue", fake_get_issue)

    r = client.get("/api/v1/jira/issues/ABC-2", headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["key"] == "ABC-2"
    assert r.json()["fields"] == {"summary": "Test"}


def test_get_missing_issue_is_404(monkeypatch):
    async def fake_get_issue(self, key):
        raise NotFound(key, ["Issue Does Not Exist"])

    monkeypatch.setattr(JiraClient, "get_issue", fake_get_issue)

    r = client.get("/api/v1/jira/issues/ABC-999", headers=HEADERS)
    assert r.status_code == 404
    assert r.json()["error"] == "NotFound"


def test_create_issue(monkeypatch):
    captured = {}

    async def fake_create(self, fields):
        captured.update(fields)
        return {"id": "200", "key": "ABC-200", "self": "url"}

    monkeypatch.setattr(JiraClient, "create", fake_create)

    payload = {"fields": {"project": {"key": "ABC"}, "issuetype": {"name": "Task"}, "summary": "New Issue"}}
    r = client.post("/api/v1/jira/issues", json=payload, headers=HEADERS)
    assert r.status_code == 201
    assert r.json() == {"id": "200", "key": "ABC-200", "self": "url"}
    assert captured == payload["fields"]


def test_create_simple_issue(monkeypatch):
    async def fake_create_issue(self, project, issue_type, summary, description):
        assert (project, issue_type, summary, description) == ("ABC", "Bug", "Broken", "")
        return {"id": "201", "key": "ABC-201"}

    monkeypatch.setattr(JiraClient, "create_issue", fake_create_issue)

    payload = {"project_key": "ABC", "issuetype_name": "Bug", "summary": "Broken"}
    r = client.post("/api/v1/jira/issues/simple", json=payload, headers=HEADERS)
    assert r.status_code == 201
    assert r.json()["key"] == "ABC-201"


def test_create_subtask_uses_path_key_as_parent(monkeypatch):
    async def fake_create_subtask(self, project, summary, description, parent_key, subtask_type="Sub-task"):
        assert parent_key == "ABC-1"
        assert subtask_type == "Sub-task"
        return {"id": "202", "key": "ABC-202"}

    monkeypatch.setattr(JiraClient, "create_subtask", fake_create_subtask)

    r = client.post("/api/v1/jira/issues/ABC-1/subtasks", json={"project_key": "ABC", "summary": "Child"}, headers=HEADERS)
    assert r.status_code == 201
    assert r.json()["key"] == "ABC-202"


def test_upstream_rejection_keeps_status(monkeypatch):
    async def fake_update_issue(self, key, fields):
        raise RemoteRejected(400, [], {"summary": "Field 'summary' cannot be set."})

    monkeypatch.setattr(JiraClient, "update_issue", fake_update_issue)

    r = client.put("/api/v1/jira/issues/ABC-3", json={"fields": {"summary": "x"}}, headers=HEADERS)
    assert r.status_code == 400
    assert r.json()["details"]["errors"] == {"summary": "Field 'summary' cannot be set."}


def test_delete_issue(monkeypatch):
    deleted = []

    async def fake_delete_issue(self, key):
        deleted.append(key)

    monkeypatch.setattr(JiraClient, "delete_issue", fake_delete_issue)

    r = client.delete("/api/v1/jira/issues/ABC-3", headers=HEADERS)
    assert r.status_code == 204
    assert deleted == ["ABC-3"]


def test_list_transitions(monkeypatch):
    async def fake_list_transitions(self, key):
        return [Transition(id="31", name="Close Issue")]

    monkeypatch.setattr(JiraClient, "list_transitions", fake_list_transitions)

    r = client.get("/api/v1/jira/issues/ABC-3/transitions", headers=HEADERS)
    assert r.status_code == 200
    assert r.json() == [{"id": "31", "name": "Close Issue"}]


def test_transition_issue(monkeypatch):
    calls = []

    async def fake_transition_issue(self, key, name, fields=None):
        calls.append((key, name, fields))

    monkeypatch.setattr(JiraClient, "transition_issue", fake_transition_issue)

    r = client.post("/api/v1/jira/issues/ABC-3/transitions", json={"name": "Start Progress"}, headers=HEADERS)
    assert r.status_code == 204
    assert calls == [("ABC-3", "Start Progress", None)]


def test_unavailable_transition_is_409(monkeypatch):
    async def fake_close_issue(self, key, resolution=None, comment="Issue closed by script"):
        raise InvalidTransition("Close Issue", ["Reopen Issue"])

    monkeypatch.setattr(JiraClient, "close_issue", fake_close_issue)

    r = client.post("/api/v1/jira/issues/ABC-3/close", json={"resolution": "Fixed"}, headers=HEADERS)
    assert r.status_code == 409
    assert r.json()["details"] == {"name": "Close Issue", "available": ["Reopen Issue"]}


def test_add_comment(monkeypatch):
    comments = []

    async def fake_create_comment(self, key, body):
        comments.append((key, body))

    monkeypatch.setattr(JiraClient, "create_comment", fake_create_comment)

    r = client.post("/api/v1/jira/issues/ABC-4/comments", json={"body": "Hello world"}, headers=HEADERS)
    assert r.status_code == 204
    assert comments == [("ABC-4", "Hello world")]


def test_browse_url():
    r = client.get("/api/v1/jira/issues/ABC-5/browse-url", headers=HEADERS)
    assert r.status_code == 200
    assert r.json() == {"key": "ABC-5", "url": "https://example.atlassian.net/browse/ABC-5"}


def test_search(monkeypatch):
    async def fake_search_page(self, jql, start=0, max_results=50):
        return SearchPage(total=1, start=start, max=max_results, issues=[{"id": "1", "key": "ABC-1", "fields": {}}])

    monkeypatch.setattr(JiraClient, "search_page", fake_search_page)

    payload = {"jql": "project=ABC", "start_at": 0, "max_results": 1}
    r = client.post("/api/v1/jira/search", json=payload, headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["issues"][0]["key"] == "ABC-1"
    assert r.json()["errors"] == []


def test_search_all(monkeypatch):
    async def fake_all_results(self, jql, max_total):
        return [{"id": str(n), "key": f"ABC-{n}"} for n in range(max_total)]

    monkeypatch.setattr(JiraClient, "all_results", fake_all_results)

    r = client.post("/api/v1/jira/search/all", json={"jql": "project=ABC", "max_total": 3}, headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["count"] == 3


def test_issue_key_carrying_a_query_is_rejected_before_upstream(monkeypatch):
    sent = []

    async def fake_perform(self, method, path, **kwargs):
        sent.append((method, path))
        return TransportResult(204)

    monkeypatch.setattr(JiraTransport, "perform", fake_perform)

    r = client.delete("/api/v1/jira/issues/ABC-1%3FdeleteSubtasks=true", headers=HEADERS)
    assert r.status_code == 422
    assert r.json()["error"] == "MalformedInput"
    r = client.get("/api/v1/jira/issues/ABC-1%23frag", headers=HEADERS)
    assert r.status_code == 422
    assert sent == []


@pytest.mark.parametrize("body", [None, "Created"])
def test_create_with_unexpected_body_still_answers_201(monkeypatch, body):
    async def fake_create(self, fields):
        return body

    monkeypatch.setattr(JiraClient, "create", fake_create)

    r = client.post("/api/v1/jira/issues", json={"fields": {"summary": "x"}}, headers=HEADERS)
    assert r.status_code == 201
    assert r.json() == {"id": "", "key": "", "self": None}


def test_get_issue_with_text_body_is_502(monkeypatch):
    async def fake_perform(self, method, path, **kwargs):
        return TransportResult(200, b"OK")

    monkeypatch.setattr(JiraTransport, "perform", fake_perform)

    r = client.get("/api/v1/jira/issues/ABC-1", headers=HEADERS)
    assert r.status_code == 502
    assert r.json()["error"] == "RemoteRejected"
