"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Callable
from unittest.mock import Mock

import httpx
import pytest

from linkstash.actions import Stash
from linkstash.classifier import Classifier
from linkstash.config import get_default_config
from linkstash.db import Database
from linkstash.fetcher import FetchedPage, Fetcher


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point all paths at a temp dir and clear API keys."""
    monkeypatch.setenv("LINKSTASH_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NO_COLOR", "1")
    for var in ("GROQ_API_KEY", "LINKSTASH_LLM_API_KEY", "JINA_API_KEY", "LINKSTASH_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config():
    """Default configuration (no API keys)."""
    return get_default_config()


@pytest.fixture
def llm_config(config):
    """Configuration with an LLM API key set."""
    config["llm"]["api_key"] = "test_llm_key_123"
    return config


@pytest.fixture
def db(tmp_path):
    """Fresh database in a temp dir."""
    return Database(tmp_path / "test.db")


@pytest.fixture
def jina_payload():
    """Typical extraction service response."""
    return {
        "code": 200,
        "status": 20000,
        "data": {
            "title": "Example Domain",
            "description": "This domain is for use in illustrative examples",
            "url": "https://example.com",
            "content": "# Example Domain\n\nThis domain is for use in illustrative examples in documents.",
        },
    }


def json_transport(
    body: Any, status_code: int = 200, calls: list | None = None
) -> httpx.MockTransport:
    """MockTransport answering every request with the same JSON body."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status_code, json=body)

    return httpx.MockTransport(handler)


def chat_completion(content: str) -> dict:
    """OpenAI-compatible chat completion response wrapping content."""
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


@pytest.fixture
def make_fetcher(config) -> Callable[..., Fetcher]:
    """Build a Fetcher whose HTTP traffic goes to a MockTransport."""

    def _make(body: Any, status_code: int = 200, calls: list | None = None) -> Fetcher:
        return Fetcher(config, transport=json_transport(body, status_code, calls))

    return _make


@pytest.fixture
def make_classifier(llm_config) -> Callable[..., Classifier]:
    """Build a Classifier (with API key) replying with the given content."""

    def _make(content: str, status_code: int = 200, calls: list | None = None) -> Classifier:
        return Classifier(
            llm_config, transport=json_transport(chat_completion(content), status_code, calls)
        )

    return _make


@pytest.fixture
def mock_fetcher():
    """Fetcher stand-in that returns a fixed page."""
    fetcher = Mock(spec=Fetcher)
    fetcher.fetch.return_value = FetchedPage(title="Example", markdown="Example body text")
    return fetcher


@pytest.fixture
def stash(config, db, mock_fetcher):
    """Stash over a temp database with no LLM key (fallback classification)."""
    return Stash(config, db=db, fetcher=mock_fetcher, classifier=Classifier(config))


# Test data helpers
def add_note(db: Database, slug: str, **fields) -> dict:
    """Insert a note with sensible defaults."""
    defaults = {
        "url": f"https://example.com/{slug}",
        "title": slug.replace("-", " ").title(),
        "description": f"Summary of {slug}",
        "category": None,
        "tags": [],
    }
    defaults.update(fields)
    return db.insert_note(**defaults)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)
