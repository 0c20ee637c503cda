"""Shared test fixtures for the Marketo client test suite."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
import pytest_asyncio

from marketo.api.client import MarketoClient
from marketo.api.dispatcher import CommandDispatcher
from marketo.oauth.credentials import CredentialManager

BASE_URL = "https://123-ABC-456.mktorest.com"
TOKEN_PATH = "/identity/oauth/token"
SAMPLE_CLIENT_ID = "a"
SAMPLE_CLIENT_SECRET = "b"
SAMPLE_BATCH_ID = 1024


# ============================================================================
# Mock Response Data
# ============================================================================


def envelope(result: list | None = None, success: bool = True, errors: list | None = None, **extra) -> dict:
    body: dict[str, Any] = {"requestId": "e42b#14272d07d78", "success": success}
    if result is not None:
        body["result"] = result
    if errors is not None:
        body["errors"] = errors
    body.update(extra)
    return body


MOCK_FAILURES_CSV = (
    "email,firstName,Import Failure Reason\n"
    "bad@,Ann,Invalid email address\n"
    "x@y.com,,Value for required field missing\n"
)

MOCK_WARNINGS_CSV = "email,Import Warning Reason\nw@y.com,Field truncated\n"


# ============================================================================
# Fake Marketo instance
# ============================================================================


class FakeMarketo:
    """httpx.MockTransport handler standing in for a Marketo instance.

    Token requests are answered automatically with ``token-1``, ``token-2``...
    Other routes are registered with ``add``; queued responses are served in
    order and the last one repeats.
    """

    def __init__(self, expires_in: int = 3600):
        self.expires_in = expires_in
        self.token_status = 200
        self.token_calls = 0
        self.token_requests: list[httpx.Request] = []
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[httpx.Response]] = {}

    def add(self, method: str, path: str, *responses: Any) -> None:
        self._routes[(method.upper(), path)] = [self._response(r) for r in responses]

    @staticmethod
    def _response(spec: Any) -> httpx.Response:
        if isinstance(spec, httpx.Response):
            return spec
        if isinstance(spec, tuple):
            status, body = spec
            if isinstance(body, (dict, list)):
                return httpx.Response(status, json=body)
            return httpx.Response(status, content=body)
        if isinstance(spec, (bytes, str)):
            return httpx.Response(200, content=spec)
        return httpx.Response(200, json=spec)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == TOKEN_PATH:
            self.token_calls += 1
            self.token_requests.append(request)
            if self.token_status != 200:
                return httpx.Response(
                    self.token_status,
                    json={"error": "invalid_client", "error_description": "Bad client credentials"},
                )
            return httpx.Response(
                200,
                json={
                    "access_token": f"token-{self.token_calls}",
                    "token_type": "bearer",
                    "expires_in": self.expires_in,
                    "scope": "apiuser@example.com",
                },
            )

        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"errors": [{"code": "404", "message": "no route"}]})
        return queue.pop(0) if len(queue) > 1 else queue[0]

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last_request.content)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_marketo():
    return FakeMarketo()


@pytest_asyncio.fixture
async def http_client(fake_marketo):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_marketo))
    yield client
    await client.aclose()


@pytest.fixture
def credentials(http_client):
    return CredentialManager(
        BASE_URL, SAMPLE_CLIENT_ID, SAMPLE_CLIENT_SECRET, http_client=http_client
    )


@pytest.fixture
def dispatcher(credentials, http_client):
    return CommandDispatcher(credentials, http_client)


@pytest.fixture
def marketo(http_client):
    """MarketoClient wired to the fake instance."""
    return MarketoClient(BASE_URL, SAMPLE_CLIENT_ID, SAMPLE_CLIENT_SECRET, http_client=http_client)


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
