"""
Public operations for linkstash.

Every operation the CLI and MCP server offer goes through Stash. Each
method is an error boundary: StashError passes through untouched, anything
else is logged and re-raised as a StashError with a readable message.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from linkstash import consistency
from linkstash.classifier import Classifier
from linkstash.config import load_config
from linkstash.db import Database
from linkstash.errors import NoteNotFoundError, StashError
from linkstash.fetcher import Fetcher
from linkstash.pipeline import SavePipeline
from linkstash.query import NoteQuery

logger = logging.getLogger(__name__)


@contextmanager
def _failures(message: str) -> Iterator[None]:
    try:
        yield
    except StashError:
        raise
    except Exception as e:
        logger.error(f"{message}: {e}")
        raise StashError(message) from e


def _clean_tags(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))


class Stash:
    """The bookmark store and everything you can do with it."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        db: Database | None = None,
        fetcher: Fetcher | None = None,
        classifier: Classifier | None = None,
    ):
        self.config = config or load_config()
        self.db = db or Database()
        self.fetcher = fetcher or Fetcher(self.config)
        self.classifier = classifier or Classifier(self.config)
        self.pipeline = SavePipeline(self.db, self.fetcher, self.classifier)

    # Notes

    def save_url(self, url: str) -> dict[str, Any]:
        """Fetch, classify and store a URL. Returns the new note."""
        with _failures("Save failed"):
            return self.pipeline.save(url)

    def get_notes(
        self,
        search: str | None = None,
        categories: list[str] | None = None,
        tags: list[str] | None = None,
        query: NoteQuery | None = None,
    ) -> list[dict[str, Any]]:
        """List notes. Explicit arguments override the matching query fields."""
        query = query.model_copy(deep=True) if query else NoteQuery()
        if search is not None:
            query.search = search
        if categories is not None:
            query.categories = categories
        if tags is not None:
            query.tags = tags

        with _failures("Could not load notes"):
            return self.db.list_notes(query)

    def get_note(self, note_id: str) -> dict[str, Any]:
        with _failures("Could not load note"):
            note = self.db.get_note(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    def delete_note(self, note_id: str) -> dict[str, Any]:
        """Delete a note, then prune names nothing else uses. Returns the removed note."""
        with _failures("Delete failed"):
            removed = self.db.delete_note(note_id)
        if removed is None:
            raise NoteNotFoundError(note_id)

        consistency.cleanup_after_delete(self.db, removed["category"], removed["tags"])
        logger.info(f"Deleted note {note_id} ({removed['url']})")
        return removed

    def update_category(self, note_id: str, category: str | None) -> dict[str, Any]:
        """Set or clear a note's category. Returns the updated note."""
        category = (category or "").strip() or None

        with _failures("Could not update category"):
            with self.db.transaction():
                note = self.db.get_note(note_id)
                if note is None:
                    raise NoteNotFoundError(note_id)
                self.db.set_note_category(note_id, category)
                if note["category"] != category:
                    consistency.prune_orphans(self.db, note["category"], [])
                return self.db.get_note(note_id)

    def update_tags(self, note_id: str, tags: list[str]) -> dict[str, Any]:
        """Replace a note's tags. Returns the updated note."""
        tags = _clean_tags(tags)

        with _failures("Could not update tags"):
            with self.db.transaction():
                note = self.db.get_note(note_id)
                if note is None:
                    raise NoteNotFoundError(note_id)
                self.db.set_note_tags(note_id, tags)
                dropped = [t for t in note["tags"] if t not in tags]
                consistency.prune_orphans(self.db, None, dropped)
                return self.db.get_note(note_id)

    # Categories and tags

    def get_categories(self) -> list[dict[str, Any]]:
        """Categories in use with note counts, most used first."""
        with _failures("Could not load categories"):
            return self.db.list_categories()

    def get_tags(self) -> list[dict[str, Any]]:
        """Tags in use with note counts, most used first."""
        with _failures("Could not load tags"):
            return self.db.list_tags()

    def rename_tag(self, old_name: str, new_name: str) -> int:
        """Rename a tag everywhere. Returns the number of notes updated."""
        with _failures("Could not rename tag"):
            return consistency.rename_tag(self.db, old_name, new_name)

    def merge_tags(self, source_names: list[str], target_name: str) -> int:
        """Merge tags into one. Returns the number of notes updated."""
        with _failures("Could not merge tags"):
            return consistency.merge_tags(self.db, source_names, target_name)

    def delete_tag(self, name: str) -> int:
        """Remove a tag from every note. Returns the number of notes updated."""
        with _failures("Could not delete tag"):
            return consistency.delete_tag(self.db, name)

    def get_stats(self) -> dict[str, Any]:
        with _failures("Could not load statistics"):
            return self.db.get_stats()
