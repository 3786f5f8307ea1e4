"""Pytest fixtures: a fake Siigo API behind httpx.MockTransport."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from mcp_server_siigo.siigo_client import SiigoClient, SiigoConfig

TOKEN_RESPONSE = {
    "access_token": "token-1",
    "expires_in": 86400,
    "token_type": "Bearer",
    "scope": "WebApi offline_access",
}


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeSiigo:
    """Records every request and answers from a (method, path) route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}
        self.add("POST", "/auth", json=TOKEN_RESPONSE)

    def add(self, method, path, status=200, json=None, content=b"", error=None):
        self.routes[(method, path)] = (status, json, content, error)

    def __call__(self, request):
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"Errors": [{"Code": "NotFound", "Message": "No route"}]})
        status, payload, content, error = route
        if error is not None:
            raise error
        if payload is not None:
            return httpx.Response(status, json=payload)
        return httpx.Response(status, content=content)

    @property
    def auth_calls(self):
        return [r for r in self.requests if r.url.path == "/auth"]

    @property
    def api_calls(self):
        return [r for r in self.requests if r.url.path != "/auth"]

    def last_body(self):
        return json.loads(self.api_calls[-1].content)


@pytest.fixture
def config():
    return SiigoConfig(
        username="sandbox@siigoapi.com",
        access_key="YmU5MzVjZjgtYWNjZXNz",
        partner_id="SandboxSiigoAPI",
        base_url="https://api.siigo.test/",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def siigo():
    return FakeSiigo()


@pytest_asyncio.fixture
async def client(config, siigo, clock):
    async with SiigoClient(config, transport=httpx.MockTransport(siigo), clock=clock) as siigo_client:
        yield siigo_client
