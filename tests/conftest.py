import json
import os
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

# Minimal env for settings, set before the app module is imported anywhere
os.environ["AUTH_STRATEGY"] = "api_key"
os.environ["API_KEY_HEADER_NAME"] = "X-API-Key"
os.environ["API_KEYS"] = '["test-key"]'  # pydantic settings can parse env JSON lists
os.environ["JIRA_BASE_URL"] = "https://example.atlassian.net"
os.environ["JIRA_EMAIL"] = "user@example.com"
os.environ["JIRA_API_TOKEN"] = "token"

from jira_mediator.clients.jira_client import JiraClient  # noqa: E402
from jira_mediator.clients.transport import JiraTransport  # noqa: E402

API_PREFIX = "/rest/api/2/"
Handler = Callable[[httpx.Request], httpx.Response]


class FakeJira:
    """Scripted JIRA server for httpx.MockTransport that records every request it sees."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Handler] = {}

    def on(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Any = None,
        content: bytes = b"",
        handler: Optional[Handler] = None,
    ) -> None:
        if handler is None:
            def handler(_: httpx.Request) -> httpx.Response:
                if json_body is not None:
                    return httpx.Response(status, json=json_body)
                return httpx.Response(status, content=content)
        self._routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len(API_PREFIX):]
        handler = self._routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, json={"errorMessages": [f"unscripted {request.method} {path}"], "errors": {}})
        return handler(request)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == API_PREFIX + path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


def paged_search(issues: List[Dict[str, Any]], server_max: int = 1000, errors_at: Optional[int] = None) -> Handler:
    """Search handler serving `issues` in pages, capping page size at `server_max`."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        start, size = body["startAt"], min(body["maxResults"], server_max)
        payload: Dict[str, Any] = {
            "startAt": start,
            "maxResults": size,
            "total": len(issues),
            "issues": issues[start:start + size],
        }
        if errors_at is not None and start >= errors_at:
            payload["errorMessages"] = ["The value 'NOPE' does not exist for the field 'project'."]
        return httpx.Response(200, json=payload)

    return handler


def make_issues(count: int, project: str = "PROJ") -> List[Dict[str, Any]]:
    return [{"id": str(10000 + n), "key": f"{project}-{n + 1}", "fields": {}} for n in range(count)]


@pytest.fixture
def fake_jira() -> FakeJira:
    return FakeJira()


@pytest_asyncio.fixture
async def jira(fake_jira):
    transport = JiraTransport(
        "https://example.atlassian.net",
        "user@example.com",
        "token",
        transport=httpx.MockTransport(fake_jira),
    )
    client = JiraClient(transport, search_page_size=50)
    async with client:
        yield client
