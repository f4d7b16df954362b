"""
API test fixtures

Serves the FastAPI app through TestClient with the Jira client dependency
overridden to talk to the scripted upstream.
"""

import pytest
from fastapi.testclient import TestClient

from jira_pulse.api.app import create_app, get_jira_client


@pytest.fixture
def app(jira_env):
    """Fresh application instance with valid configuration"""
    return create_app()


@pytest.fixture
def client(app, make_http_client, make_jira_client):
    """TestClient whose Jira calls go to the fake upstream"""

    async def override_jira_client():
        async with make_http_client() as http_client:
            yield make_jira_client(http_client)

    app.dependency_overrides[get_jira_client] = override_jira_client
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
