"""Shared fixtures for the redraft test suite.

HTTP never leaves the process: ``FakeRewriteService`` is plugged into
``httpx.MockTransport`` and records every request it receives.
"""

import json
import os

# Keep a developer's environment from leaking into the tests.
for _key in list(os.environ):
    if _key.startswith("REDRAFT_"):
        del os.environ[_key]

from typing import Callable, Optional

import httpx
import pytest

from redraft.api_client import RewriteClient
from redraft.config import Settings, get_settings

API_URL = "http://rewrite.test/api/rewrite"


def shout(text: str) -> str:
    """Default fake rewrite: upper-case and drop surrounding whitespace."""
    return text.strip().upper()


class FakeRewriteService:
    """Programmable stand-in for the rewrite service.

    ``fail_when(segments)`` decides per request whether to fail; ``failure``
    picks how (``timeout``, ``connect``, ``500``, ``bad_json``, ``no_array``,
    ``short``).
    """

    def __init__(
        self,
        rewrite: Callable[[str], str] = shout,
        fail_when: Optional[Callable[[list[str]], bool]] = None,
        failure: str = "timeout",
    ) -> None:
        self.rewrite = rewrite
        self.fail_when = fail_when or (lambda segments: False)
        self.failure = failure
        self.requests: list[dict] = []

    @property
    def batch_sizes(self) -> list[int]:
        return [len(body["segments"]) for body in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/health":
            return httpx.Response(200, json={"ok": True})

        body = json.loads(request.content)
        self.requests.append(body)
        segments = body["segments"]

        if self.fail_when(segments):
            if self.failure == "timeout":
                raise httpx.ReadTimeout("timed out", request=request)
            if self.failure == "connect":
                raise httpx.ConnectError("connection refused", request=request)
            if self.failure == "500":
                return httpx.Response(500, json={"error": "upstream failed"})
            if self.failure == "bad_json":
                return httpx.Response(200, text="<html>not json</html>")
            if self.failure == "no_array":
                return httpx.Response(200, json={"error": "Model did not return a segments array."})
            if self.failure == "short":
                return httpx.Response(200, json={"segments": [self.rewrite(s) for s in segments[:-1]]})
            raise AssertionError(f"unknown failure mode {self.failure!r}")

        return httpx.Response(200, json={"segments": [self.rewrite(s) for s in segments]})


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        rewrite_api_url=API_URL,
        max_batch_size=15,
        max_concurrency=3,
        request_timeout=5,
    )


@pytest.fixture
def service() -> FakeRewriteService:
    return FakeRewriteService()


@pytest.fixture
def make_client():
    """Build a RewriteClient wired to a fake service."""

    def _make(service: FakeRewriteService, **kwargs) -> RewriteClient:
        kwargs.setdefault("api_url", API_URL)
        kwargs.setdefault("api_token", "")
        kwargs.setdefault("timeout", 5)
        return RewriteClient(transport=httpx.MockTransport(service), **kwargs)

    return _make


def paragraphs(count: int) -> str:
    """HTML with *count* qualifying text nodes."""
    return "".join(f"<p>Paragraph number {i} talks about history.</p>" for i in range(count))
