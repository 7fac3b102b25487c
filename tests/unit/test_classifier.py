"""Tests for the LLM classifier."""

import json

import httpx
import pytest

from conftest import request_json
from linkstash.classifier import Classification, Classifier, strip_code_fence


class TestStripCodeFence:
    """Test cases for strip_code_fence."""

    def test_plain_json_untouched(self):
        assert strip_code_fence('{"a": 1}') == '{"a": 1}'

    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_surrounding_whitespace(self):
        assert strip_code_fence('  \n```json\n{"a": 1}\n```\n ') == '{"a": 1}'

    def test_closing_fence_on_same_line(self):
        assert strip_code_fence('```json\n{"a": 1}```') == '{"a": 1}'

    def test_one_line_fence(self):
        assert strip_code_fence('```json {"a": 1} ```') == '{"a": 1}'

    def test_one_line_bare_fence(self):
        assert strip_code_fence('```{"a": 1}```') == '{"a": 1}'


class TestClassification:
    """Test cases for the Classification schema."""

    def test_tags_deduplicated_and_clamped(self):
        result = Classification(tags=["react", " react ", "hooks", "", "state", "redux"])
        assert result.tags == ["react", "hooks", "state"]

    def test_blank_fields_become_none(self):
        result = Classification(category="  ", summary="")
        assert result.category is None
        assert result.summary is None

    def test_null_tags(self):
        assert Classification(tags=None).tags == []


class TestClassifier:
    """Test cases for Classifier."""

    def test_no_api_key_falls_back(self, config):
        """Test fallback without a key, and no HTTP call is made."""

        def handler(request):
            raise AssertionError("no request expected")

        classifier = Classifier(config, transport=httpx.MockTransport(handler))
        result = classifier.classify("Example", "body", [], [])

        assert result["category"] == "Uncategorized"
        assert result["tags"] == []
        assert result["summary"] == "Example"
        assert result["status"] == "fallback"

    def test_no_api_key_uses_first_existing_category(self, config):
        """Test fallback prefers the first existing category."""
        result = Classifier(config).classify("Example", "body", ["Python", "Rust"], ["x"])
        assert result["category"] == "Python"

    def test_classify_success(self, make_classifier):
        """Test a clean JSON reply is used as-is."""
        reply = json.dumps({
            "category": "Python",
            "tags": ["asyncio", "httpx"],
            "summary": "How to make concurrent HTTP requests with httpx and asyncio.",
        })
        result = make_classifier(reply).classify("Async HTTP", "content", ["Python"], ["asyncio"])

        assert result["category"] == "Python"
        assert result["tags"] == ["asyncio", "httpx"]
        assert result["summary"].startswith("How to make")
        assert result["status"] == "classified"

    def test_classify_fenced_reply(self, make_classifier):
        """Test a reply wrapped in a ```json fence is parsed."""
        reply = '```json\n{"category": "Databases", "tags": ["sqlite"], "summary": "SQLite tips"}\n```'
        result = make_classifier(reply).classify("SQLite", "content")

        assert result["category"] == "Databases"
        assert result["tags"] == ["sqlite"]

    @pytest.mark.parametrize(
        "reply",
        [
            '```json\n{"category": "Python", "tags": ["pytest"], "summary": "S"}```',
            '```json {"category": "Python", "tags": ["pytest"], "summary": "S"} ```',
        ],
    )
    def test_classify_tight_fences(self, make_classifier, reply):
        """Test fences without their own closing line are still parsed."""
        result = make_classifier(reply).classify("Pytest", "content")

        assert result["status"] == "classified"
        assert result["category"] == "Python"
        assert result["tags"] == ["pytest"]

    def test_too_many_tags_clamped(self, make_classifier):
        """Test at most three tags survive."""
        reply = json.dumps({"category": "C", "tags": ["a", "b", "c", "d", "e"], "summary": "s"})
        result = make_classifier(reply).classify("T", "content")
        assert result["tags"] == ["a", "b", "c"]

    def test_missing_fields_filled_in(self, make_classifier):
        """Test missing category/summary fall back individually."""
        result = make_classifier('{"tags": ["x"]}').classify("Title", "content", ["Existing"])

        assert result["category"] == "Existing"
        assert result["tags"] == ["x"]
        assert result["summary"] == "Title"
        assert result["status"] == "classified"

    def test_invalid_json_falls_back(self, make_classifier):
        """Test unparseable replies degrade to the fallback."""
        result = make_classifier("Sure! Here is the category: Python").classify(
            "Title", "content", ["Python"]
        )

        assert result["category"] == "Python"
        assert result["tags"] == []
        assert result["summary"] == "Title"
        assert result["status"] == "fallback"
        assert result["error"]

    def test_json_array_falls_back(self, make_classifier):
        """Test a JSON value that is not an object degrades to the fallback."""
        result = make_classifier('["Python"]').classify("Title", "content")
        assert result["status"] == "fallback"

    def test_http_error_falls_back(self, make_classifier):
        """Test non-success status degrades to the fallback."""
        result = make_classifier("{}", status_code=503).classify("Title", "content")

        assert result["status"] == "fallback"
        assert result["category"] == "Uncategorized"
        assert result["summary"] == "Title"

    def test_network_error_falls_back(self, llm_config):
        """Test transport errors never escape classify."""

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        classifier = Classifier(llm_config, transport=httpx.MockTransport(handler))
        result = classifier.classify("Title", "content")

        assert result["status"] == "fallback"
        assert "timed out" in result["error"]

    def test_malformed_completion_falls_back(self, llm_config):
        """Test a response without choices degrades to the fallback."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
        result = Classifier(llm_config, transport=transport).classify("Title", "content")
        assert result["status"] == "fallback"

    def test_null_content_falls_back(self, llm_config):
        """Test a completion with null content degrades to the fallback."""
        body = {"choices": [{"message": {"role": "assistant", "content": None}}]}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        result = Classifier(llm_config, transport=transport).classify("Title", "content")
        assert result["status"] == "fallback"

    def test_request_shape(self, make_classifier):
        """Test the request carries prompts, existing names and truncated content."""
        calls = []
        classifier = make_classifier('{"category": "C", "tags": [], "summary": "s"}', calls=calls)
        content = "x" * 5000

        classifier.classify("My Title", content, ["Python", "Rust"], ["asyncio", "tokio"])

        request = calls[0]
        assert request.url.path.endswith("/chat/completions")
        assert request.headers["Authorization"] == "Bearer test_llm_key_123"

        body = request_json(request)
        assert body["model"] == "llama-3.3-70b-versatile"
        assert body["temperature"] == 0.3
        assert body["max_tokens"] == 600

        system, user = body["messages"]
        assert system["role"] == "system"
        assert "Python, Rust" in system["content"]
        assert "asyncio, tokio" in system["content"]
        assert "At most 3 tags" in system["content"]
        assert user["role"] == "user"
        assert "My Title" in user["content"]
        assert "x" * 3500 in user["content"]
        assert "x" * 3501 not in user["content"]

    def test_prompt_without_existing_names(self, make_classifier):
        """Test empty category/tag lists render as (none)."""
        calls = []
        make_classifier('{"category": "C"}', calls=calls).classify("T", "c")

        system = request_json(calls[0])["messages"][0]["content"]
        assert "(none)" in system

    def test_api_key_from_env(self, config, monkeypatch):
        """Test GROQ_API_KEY is picked up."""
        monkeypatch.setenv("GROQ_API_KEY", "gsk_env")
        assert Classifier(config).api_key == "gsk_env"

    @pytest.mark.parametrize("limit", [10, 100])
    def test_content_limit_from_config(self, llm_config, limit):
        """Test the truncation length is configurable."""
        llm_config["classifier"]["max_content_chars"] = limit
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

        Classifier(llm_config, transport=httpx.MockTransport(handler)).classify("T", "y" * 500)

        user = request_json(calls[0])["messages"][1]["content"]
        assert "y" * limit in user
        assert "y" * (limit + 1) not in user
