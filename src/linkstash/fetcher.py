"""
Content fetcher for linkstash.

Turns a URL into readable markdown via a Jina Reader compatible
extraction service.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from linkstash.config import get_extractor_api_key, load_config
from linkstash.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"


class FetchedPage(BaseModel):
    """Normalized extraction result."""

    title: str
    description: str = ""
    markdown: str = ""


class Fetcher:
    """Client for the extraction service."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.config = config or load_config()
        extractor_config = self.config.get("extractor", {})
        self.base_url = extractor_config.get("base_url", "https://r.jina.ai").rstrip("/")
        self.timeout = extractor_config.get("timeout", 30.0)
        self.api_key = get_extractor_api_key(self.config)
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def fetch(self, url: str) -> FetchedPage:
        """
        Fetch a page through the extraction service.

        Raises FetchError on any network error, non-success status or
        unreadable payload. There is no retry.
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(f"{self.base_url}/{url}", headers=self._headers())
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.error(f"Error fetching {url}: {e}")
            raise FetchError(str(e)) from e

        if not isinstance(payload, dict):
            logger.error(f"Unexpected extraction payload for {url}: {payload!r}")
            raise FetchError("payload is not an object")

        logger.debug(f"Extraction response for {url}: {payload.get('code')} {payload.get('status')}")
        data = payload.get("data")
        return self._normalize(data if isinstance(data, dict) else {})

    def _normalize(self, data: dict[str, Any]) -> FetchedPage:
        content = data.get("content") or data.get("markdown") or ""
        logger.debug(f"Extracted {len(content)} characters")
        return FetchedPage(
            title=data.get("title") or DEFAULT_TITLE,
            description=data.get("description") or "",
            markdown=content,
        )