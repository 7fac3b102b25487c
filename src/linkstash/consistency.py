"""
Consistency maintenance for linkstash.

Keeps note tag lists and the category/tag name tables in step after
deletes, renames and merges. Tag batches run inside one transaction:
either every affected note changes or none does.
"""

import logging

from linkstash.db import Database
from linkstash.errors import StashError

logger = logging.getLogger(__name__)


def _clean_name(name: str | None, what: str = "Tag name") -> str:
    name = (name or "").strip()
    if not name:
        raise StashError(f"{what} cannot be empty")
    return name


def prune_orphans(db: Database, category: str | None, tags: list[str]) -> list[str]:
    """
    Drop category/tag rows that no note references any more.

    Only the given names are checked. Returns the names removed.
    """
    removed = []

    if category and db.count_category(category) == 0:
        if db.drop_category(category):
            logger.info(f"Removed orphaned category: {category}")
            removed.append(category)

    for tag in dict.fromkeys(tags):
        if db.count_tag(tag) == 0:
            if db.drop_tag(tag):
                logger.info(f"Removed orphaned tag: {tag}")
                removed.append(tag)

    return removed


def cleanup_after_delete(db: Database, category: str | None, tags: list[str]) -> None:
    """Prune after a note deletion. Failures are logged, never raised."""
    try:
        prune_orphans(db, category, tags)
    except Exception as e:
        # The deletion itself already succeeded
        logger.error(f"Error cleaning up orphaned categories and tags: {e}")


def rename_tag(db: Database, old_name: str, new_name: str) -> int:
    """
    Rename a tag on every note that carries it.

    Refuses when any note already has new_name; use merge_tags for that.
    Returns the number of notes updated.
    """
    old_name = _clean_name(old_name)
    new_name = _clean_name(new_name, "New tag name")

    with db.transaction():
        if db.count_tag(new_name) > 0:
            raise StashError(f"Tag '{new_name}' already exists")

        notes = db.notes_with_any_tag([old_name])
        for note in notes:
            updated = [new_name if t == old_name else t for t in note["tags"]]
            db.set_note_tags(note["id"], updated)

        prune_orphans(db, None, [old_name])

    logger.info(f"Renamed tag {old_name} -> {new_name} on {len(notes)} notes")
    return len(notes)


def merge_tag_list(tags: list[str], sources: list[str], target: str) -> list[str]:
    """Drop every source tag and keep target exactly once, in place if present."""
    merged: list[str] = []
    for tag in tags:
        if tag == target:
            if target not in merged:
                merged.append(tag)
        elif tag not in sources:
            merged.append(tag)
    if target not in merged:
        merged.append(target)
    return merged


def merge_tags(db: Database, source_names: list[str], target_name: str) -> int:
    """
    Fold several tags into one.

    A note counts as updated only when its tag list actually changed.
    Returns the number of notes updated.
    """
    target_name = _clean_name(target_name, "Target tag name")
    sources = [s.strip() for s in source_names if s and s.strip()]
    if not sources:
        raise StashError("No tags to merge")

    updated_count = 0
    with db.transaction():
        for note in db.notes_with_any_tag(sources):
            merged = merge_tag_list(note["tags"], sources, target_name)
            if merged != note["tags"]:
                db.set_note_tags(note["id"], merged)
                updated_count += 1

        prune_orphans(db, None, [s for s in sources if s != target_name])

    logger.info(f"Merged tags {sources} -> {target_name} on {updated_count} notes")
    return updated_count


def delete_tag(db: Database, name: str) -> int:
    """Remove a tag from every note. Notes themselves are kept. Returns the count."""
    name = _clean_name(name)

    with db.transaction():
        notes = db.notes_with_any_tag([name])
        for note in notes:
            db.set_note_tags(note["id"], [t for t in note["tags"] if t != name])

        prune_orphans(db, None, [name])

    logger.info(f"Deleted tag {name} from {len(notes)} notes")
    return len(notes)
