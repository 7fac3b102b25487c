"""
Save pipeline for linkstash.

validate -> dedupe -> fetch -> classify -> store. The store write is the
last step, so nothing is persisted when an earlier step fails.
"""

import logging
import sqlite3
from typing import Any
from urllib.parse import urlparse

from linkstash.classifier import Classifier
from linkstash.db import Database
from linkstash.errors import StashError
from linkstash.fetcher import Fetcher

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: str) -> str:
    """Return the trimmed URL, or raise StashError if it cannot be saved."""
    url = (url or "").strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise StashError(f"Invalid URL: {url}") from e
    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.netloc:
        raise StashError(f"Invalid URL: {url}")
    return url


class SavePipeline:
    """Turns a URL into a stored, classified note."""

    def __init__(
        self,
        db: Database,
        fetcher: Fetcher,
        classifier: Classifier,
    ):
        self.db = db
        self.fetcher = fetcher
        self.classifier = classifier

    def save(self, url: str) -> dict[str, Any]:
        """
        Save a URL.

        Raises StashError for an invalid or already stored URL (before any
        network call) and FetchError when the page cannot be fetched.
        Classification problems never fail the save.
        """
        url = validate_url(url)

        if self.db.get_note_by_url(url):
            raise StashError(f"URL already exists: {url}")

        page = self.fetcher.fetch(url)

        result = self.classifier.classify(
            page.title,
            page.markdown,
            self.db.existing_categories(),
            self.db.existing_tags(),
        )
        if result["status"] == "fallback":
            logger.info(f"Saving {url} with fallback classification ({result.get('error')})")

        try:
            note = self.db.insert_note(
                url=url,
                title=page.title,
                description=result["summary"],
                category=result["category"],
                tags=result["tags"],
            )
        except sqlite3.IntegrityError as e:
            # Saved by someone else between the check above and this insert
            raise StashError(f"URL already exists: {url}") from e
        logger.info(f"Saved {url} as {note['id']}")
        return note
