"""Shared fixtures: a scripted fake Perplexica served over httpx.MockTransport."""

import json
import logging

import httpx
import pytest

from perplexica_search.core.api.client import SearchClient
from perplexica_search.core.config.models import ClientConfig


PROVIDERS = {
    "providers": [
        {
            "id": "openai",
            "chatModels": [{"key": "gpt-4o-mini"}],
            "embeddingModels": [{"key": "text-embedding-3-small"}],
        }
    ]
}

PARIS = {
    "message": "Paris is the capital of France.",
    "sources": [{"metadata": {"url": "https://example.com", "title": "Example"}}],
}

EMPTY = {"message": "", "sources": []}


class FakePerplexica:
    """Serves ``/api/providers`` and a script of ``/api/search`` replies.

    Each search call consumes the next scripted reply; the last one repeats.
    A reply may be a JSON-able dict, an ``httpx.Response`` or an exception
    to raise from the transport.
    """

    def __init__(self, *replies, providers=PROVIDERS):
        self.replies = list(replies) or [PARIS]
        self.providers = providers
        self.search_calls = 0
        self.provider_calls = 0
        self.search_bodies = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/api/providers"):
            self.provider_calls += 1
            if isinstance(self.providers, Exception):
                raise self.providers
            return httpx.Response(200, json=self.providers)

        self.search_calls += 1
        self.search_bodies.append(json.loads(request.content))
        reply = self.replies[min(self.search_calls, len(self.replies)) - 1]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def client(self, base_url: str = "http://localhost:3000", **kwargs) -> SearchClient:
        return SearchClient(
            ClientConfig(base_url=base_url),
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )


@pytest.fixture
def fake():
    """Factory for FakePerplexica instances."""
    return FakePerplexica


@pytest.fixture
def sleeps():
    """Records requested sleep durations instead of sleeping."""

    class Recorder(list):
        def __call__(self, seconds):
            self.append(seconds)

    return Recorder()


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep the host environment and CLI logging setup out of tests."""
    monkeypatch.delenv("PERPLEXICA_URL", raising=False)
    yield
    root = logging.getLogger("perplexica_search")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
