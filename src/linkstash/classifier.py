"""
LLM Classifier for linkstash.

Assigns a saved page one category, up to three tags and a short summary.
Talks to any OpenAI-compatible chat completions endpoint (Groq by default).
"""

import json
import logging
import re
import time
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from linkstash.config import get_llm_api_key, load_config

logger = logging.getLogger(__name__)

MAX_TAGS = 3


class Classification(BaseModel):
    """Schema for LLM classification output."""

    category: str | None = Field(default=None, description="Single category name")
    tags: list[str] = Field(default_factory=list, description="At most three tags")
    summary: str | None = Field(default=None, description="120-200 character summary")

    @field_validator("category", "summary", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        cleaned: list[str] = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned[:MAX_TAGS]


SYSTEM_PROMPT = """You are a content analyst who files web pages into a personal knowledge base.
Analyze the page and provide a category, tags and a summary.

## Existing categories
{categories}

## Existing tags
{tags}

## Category rules
- Prefer the best matching existing category
- Only create a new category if none of the existing ones fit
- Be specific: "React Development" or "Database Design", not "Technology"

## Tag rules (important)
- Prefer matching existing tags; only create a new tag when nothing fits
- At most {max_tags} tags. Fewer is better; an empty list beats a weak match
- Use only core technologies, tools or concepts the page explicitly names
- No descriptive or adjective tags

## Summary rules
- 120-200 characters
- State the core value of the page: what a tutorial teaches, what problem a tool solves

## Output
Return ONLY valid JSON matching this schema:
```json
{{
  "category": "category name",
  "tags": ["tag"],
  "summary": "practical summary"
}}
```

Return ONLY the JSON object, no explanation or markdown."""


USER_PROMPT = """Analyze the following page.

Title: {title}

Content:
{content}

Using the existing categories and tags where they fit, return the JSON result:"""


FENCE_OPEN = re.compile(r"^```[\w-]*\s*")
FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` or ```json fence, if present."""
    text = text.strip()
    if text.startswith("```"):
        # Closing fence may share a line with the JSON
        text = FENCE_OPEN.sub("", text, count=1)
        text = FENCE_CLOSE.sub("", text, count=1).strip()
    return text


class Classifier:
    """LLM-powered page classifier with a heuristic fallback."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.config = config or load_config()
        self.llm_config = self.config.get("llm", {})
        classifier_config = self.config.get("classifier", {})

        self.api_key = get_llm_api_key(self.config)
        self.base_url = self.llm_config.get("base_url", "https://api.groq.com/openai/v1").rstrip("/")
        self.model = self.llm_config.get("model", "llama-3.3-70b-versatile")
        self.temperature = self.llm_config.get("temperature", 0.3)
        self.max_tokens = self.llm_config.get("max_tokens", 600)
        self.timeout = self.llm_config.get("timeout", 30.0)
        self.max_content_chars = classifier_config.get("max_content_chars", 3500)
        self.fallback_category = classifier_config.get("fallback_category", "Uncategorized")
        self.transport = transport

    def classify(
        self,
        title: str,
        content: str,
        categories: list[str] | None = None,
        tags: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Classify a page.

        Returns a dict with category, tags, summary and metadata. Never
        raises: a missing API key, HTTP failure or unparseable reply all
        degrade to the fallback result.
        """
        categories = categories or []
        tags = tags or []
        start_time = time.time()

        if not self.api_key:
            logger.info("No LLM API key configured, using fallback classification")
            return self._fallback(title, categories, "No API key", start_time)

        messages = self._build_messages(title, content, categories, tags)

        try:
            response = self._call_llm(messages)
            parsed = self._parse_response(response)
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            logger.warning(f"Classification failed, using fallback: {e}")
            return self._fallback(title, categories, str(e), start_time)

        processing_time = int((time.time() - start_time) * 1000)
        result = {
            "category": parsed.category or self._fallback_category(categories),
            "tags": parsed.tags,
            "summary": parsed.summary or title,
            "llm_model": self.model,
            "processing_time_ms": processing_time,
            "status": "classified",
        }
        logger.info(f"Classified '{title}' as {result['category']} {result['tags']}")
        return result

    def _build_messages(
        self, title: str, content: str, categories: list[str], tags: list[str]
    ) -> list[dict[str, str]]:
        system = SYSTEM_PROMPT.format(
            categories=", ".join(categories) if categories else "(none)",
            tags=", ".join(tags) if tags else "(none)",
            max_tags=MAX_TAGS,
        )
        user = USER_PROMPT.format(title=title, content=content[: self.max_content_chars])
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    def _call_llm(self, messages: list[dict[str, str]]) -> str:
        """Call the chat completions endpoint."""
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": messages,
                    "temperature": self.temperature,
                    "max_tokens": self.max_tokens,
                },
            )
            response.raise_for_status()
            return response.json()["choices"][0]["message"]["content"]

    def _parse_response(self, response: str | None) -> Classification:
        """Parse and validate the model reply."""
        if not isinstance(response, str):
            raise ValueError(f"Expected text content, got {type(response).__name__}")
        data = json.loads(strip_code_fence(response))
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        try:
            return Classification(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid classification: {e}") from e

    def _fallback_category(self, categories: list[str]) -> str:
        return categories[0] if categories else self.fallback_category

    def _fallback(
        self, title: str, categories: list[str], error: str, start_time: float
    ) -> dict[str, Any]:
        """Fallback when the LLM is unavailable or unusable."""
        return {
            "category": self._fallback_category(categories),
            "tags": [],
            "summary": title,
            "llm_model": self.model,
            "processing_time_ms": int((time.time() - start_time) * 1000),
            "status": "fallback",
            "error": error,
        }
