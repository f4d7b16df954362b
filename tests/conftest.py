"""
Pytest configuration and shared fixtures

Provides an in-memory Jira upstream (served through httpx.MockTransport),
payload builders and a recorded sleep so retry tests never wait.
"""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from jira_pulse.async_http_client import AsyncRetryingHTTPClient
from jira_pulse.collectors.jira_rest_client import JiraRESTClient

JIRA_BASE_URL = "https://pulse-test.atlassian.net"
SEARCH_PATH = "/rest/api/3/search/jql"


# ===== Fake Jira upstream =====


class FakeJira:
    """
    Scripted Jira REST API.

    Routes map (method, path) to a list of replies served in order; the
    last reply repeats. A reply is (status, payload) or an exception
    instance to raise (e.g. httpx.ConnectError). Searches are matched by a
    fragment of the JQL in the request body. Unknown routes answer 404.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.searches: list[tuple[str, list[Any]]] = []
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *replies: Any) -> None:
        self.routes[(method, path)] = list(replies)

    def add_search(self, jql_fragment: str, *replies: Any) -> None:
        self.searches.append((jql_fragment, list(replies)))

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def search_bodies(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests_to(SEARCH_PATH)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        replies = None
        if request.method == "POST" and request.url.path == SEARCH_PATH:
            jql = json.loads(request.content).get("jql", "")
            replies = next((r for fragment, r in self.searches if fragment in jql), None)
        else:
            replies = self.routes.get((request.method, request.url.path))

        if replies is None:
            return httpx.Response(404, json={"errorMessages": ["No route"]})

        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        status_code, payload = reply
        return httpx.Response(status_code, json=payload)


class RecordedSleep:
    """Stands in for asyncio.sleep and records the requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_jira():
    """Provide an empty scripted Jira upstream"""
    return FakeJira()


@pytest.fixture
def recorded_sleep():
    """Provide a sleep coroutine that records delays instead of waiting"""
    return RecordedSleep()


@pytest.fixture
def make_http_client(fake_jira, recorded_sleep) -> Callable[..., AsyncRetryingHTTPClient]:
    """Factory for retrying HTTP clients wired to the fake upstream"""

    def factory(**kwargs: Any) -> AsyncRetryingHTTPClient:
        kwargs.setdefault("http2", False)
        kwargs.setdefault("sleep", recorded_sleep)
        kwargs.setdefault("transport", httpx.MockTransport(fake_jira.handler))
        return AsyncRetryingHTTPClient(**kwargs)

    return factory


@pytest.fixture
def make_jira_client() -> Callable[[AsyncRetryingHTTPClient], JiraRESTClient]:
    """Factory for Jira clients bound to an open HTTP client"""

    def factory(http_client: AsyncRetryingHTTPClient) -> JiraRESTClient:
        return JiraRESTClient(
            base_url=JIRA_BASE_URL,
            api_user="pulse-bot@corp.test",
            api_token="s3cr3t-api-token",
            http_client=http_client,
        )

    return factory


@pytest.fixture
def jira_env(monkeypatch):
    """Set valid Jira environment variables"""
    monkeypatch.setenv("JIRA_BASE_URL", JIRA_BASE_URL)
    monkeypatch.setenv("JIRA_API_USER", "pulse-bot@corp.test")
    monkeypatch.setenv("JIRA_API_TOKEN", "s3cr3t-api-token")
    monkeypatch.delenv("JIRA_MAX_RESULTS", raising=False)
    monkeypatch.delenv("DASHBOARD_MAX_CONCURRENCY", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_JSON", raising=False)


# ===== Jira payload builders =====


@pytest.fixture
def issue_payload() -> Callable[..., dict[str, Any]]:
    """Builder for raw search-result issues"""

    def build(
        key: str,
        status: str | None = "To Do",
        summary: str = "Sample issue",
        issue_type: str | None = "Task",
        priority: str | None = "Medium",
        assignee: str | None = None,
        fix_versions: list[str] | None = None,
        **extra_fields: Any,
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "summary": summary,
            "created": "2026-01-05T09:30:00.000+0000",
            "updated": "2026-02-10T10:00:00.000+0000",
        }
        if status is not None:
            fields["status"] = {"name": status}
        if issue_type is not None:
            fields["issuetype"] = {"name": issue_type}
        if priority is not None:
            fields["priority"] = {"name": priority}
        if assignee is not None:
            fields["assignee"] = {"displayName": assignee, "accountId": f"acc-{assignee.lower()}"}
        if fix_versions is not None:
            fields["fixVersions"] = [{"id": version_id, "name": f"v{version_id}"} for version_id in fix_versions]
        fields.update(extra_fields)
        return {"id": f"1{key.split('-')[-1]}", "key": key, "fields": fields}

    return build


@pytest.fixture
def version_payload() -> Callable[..., dict[str, Any]]:
    """Builder for raw project versions"""

    def build(
        version_id: str,
        name: str,
        released: bool = False,
        archived: bool = False,
        start_date: str | None = None,
        release_date: str | None = None,
    ) -> dict[str, Any]:
        data: dict[str, Any] = {"id": version_id, "name": name, "released": released, "archived": archived}
        if start_date:
            data["startDate"] = start_date
        if release_date:
            data["releaseDate"] = release_date
        return data

    return build


@pytest.fixture
def project_payload() -> Callable[..., dict[str, Any]]:
    """Builder for raw projects"""

    def build(key: str, name: str | None = None, lead: str | None = "Dana Lead") -> dict[str, Any]:
        data: dict[str, Any] = {"id": f"100{len(key)}", "key": key, "name": name or f"{key} Project"}
        if lead:
            data["lead"] = {"displayName": lead}
        return data

    return build
