"""
Database module for linkstash.

SQLite storage for notes, plus the category and tag name tables.
"""

import json
import sqlite3
import uuid
from collections import Counter
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator

from linkstash.config import get_db_path
from linkstash.query import NoteQuery

# Schema version for migrations
SCHEMA_VERSION = 1

SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- Saved pages
CREATE TABLE IF NOT EXISTS notes (
    id TEXT PRIMARY KEY,                    -- uuid4 hex
    url TEXT UNIQUE NOT NULL,
    title TEXT NOT NULL,
    description TEXT,                       -- AI summary
    category TEXT,
    tags TEXT NOT NULL DEFAULT '[]',        -- JSON array, ordered
    created_at TEXT NOT NULL,               -- ISO 8601
    updated_at TEXT NOT NULL
);

-- Category and tag names. Derived from notes; pruned when unused.
CREATE TABLE IF NOT EXISTS categories (
    name TEXT PRIMARY KEY,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tags (
    name TEXT PRIMARY KEY,
    created_at TEXT NOT NULL
);

-- Indexes
CREATE INDEX IF NOT EXISTS idx_notes_created ON notes(created_at);
CREATE INDEX IF NOT EXISTS idx_notes_category ON notes(category);
"""

SORT_COLUMNS = {
    "created_at": "created_at",
    "title": "title COLLATE NOCASE",
}

HAS_TAG = "EXISTS (SELECT 1 FROM json_each(notes.tags) WHERE json_each.value = ?)"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def _row_to_note(row: sqlite3.Row) -> dict[str, Any]:
    note = dict(row)
    note["tags"] = json.loads(note.get("tags") or "[]")
    return note


class Database:
    """SQLite database wrapper for linkstash."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self._tx: sqlite3.Connection | None = None
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure database exists and schema is current."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)
            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,)
            )

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        # Unicode-aware lowercase for search; SQLite's lower() is ASCII only
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections.

        Inside transaction() this hands out the transaction's connection
        and leaves commit/rollback to it.
        """
        if self._tx is not None:
            yield self._tx
            return

        conn = self._open()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run every call made inside the block as one all-or-nothing unit."""
        if self._tx is not None:
            yield
            return

        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            self._tx = conn
            try:
                yield
            finally:
                self._tx = None

    # Notes

    def insert_note(
        self,
        url: str,
        title: str,
        description: str | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> dict[str, Any]:
        """Insert a note and register its category and tags. Returns the note."""
        now = _now()
        note_id = uuid.uuid4().hex
        tags = list(tags or [])

        with self._connect() as conn:
            conn.execute("""
                INSERT INTO notes (
                    id, url, title, description, category, tags,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                note_id, url, title, description, category,
                json.dumps(tags, ensure_ascii=False), now, now,
            ))
            self._register(conn, category, tags)

        return {
            "id": note_id,
            "url": url,
            "title": title,
            "description": description,
            "category": category,
            "tags": tags,
            "created_at": now,
            "updated_at": now,
        }

    def get_note(self, note_id: str) -> dict[str, Any] | None:
        """Get a single note by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM notes WHERE id = ?", (note_id,)
            ).fetchone()
            if row:
                return _row_to_note(row)
        return None

    def get_note_by_url(self, url: str) -> dict[str, Any] | None:
        """Get a single note by its URL."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM notes WHERE url = ?", (url,)
            ).fetchone()
            if row:
                return _row_to_note(row)
        return None

    def resolve_id(self, prefix: str) -> str | None:
        """Expand an id prefix to a full id when exactly one note matches."""
        if not prefix:
            return None
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id FROM notes WHERE substr(id, 1, ?) = ? LIMIT 2",
                (len(prefix), prefix)
            ).fetchall()
        if len(rows) == 1:
            return rows[0]["id"]
        return None

    def list_notes(self, query: NoteQuery | None = None) -> list[dict[str, Any]]:
        """List notes matching the query, newest first unless told otherwise."""
        query = query or NoteQuery()
        sql = "SELECT * FROM notes WHERE 1=1"
        params: list[Any] = []

        if query.search:
            needle = query.search.casefold()
            sql += (
                " AND (instr(casefold(title), ?) > 0"
                " OR instr(casefold(description), ?) > 0)"
            )
            params.extend([needle, needle])

        if query.categories:
            placeholders = ", ".join("?" for _ in query.categories)
            sql += f" AND category IN ({placeholders})"
            params.extend(query.categories)

        for tag in query.tags:
            sql += f" AND {HAS_TAG}"
            params.append(tag)

        direction = "ASC" if query.sort_order == "asc" else "DESC"
        sql += f" ORDER BY {SORT_COLUMNS[query.sort_by]} {direction}, rowid {direction}"

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [_row_to_note(row) for row in rows]

    def delete_note(self, note_id: str) -> dict[str, Any] | None:
        """Delete a note. Returns the removed note, or None if it did not exist."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM notes WHERE id = ?", (note_id,)
            ).fetchone()
            if not row:
                return None
            conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
            return _row_to_note(row)

    def set_note_tags(self, note_id: str, tags: list[str]) -> bool:
        """Replace a note's tag list. Returns True if the note exists."""
        with self._connect() as conn:
            cursor = conn.execute("""
                UPDATE notes SET tags = ?, updated_at = ? WHERE id = ?
            """, (json.dumps(list(tags), ensure_ascii=False), _now(), note_id))
            if cursor.rowcount > 0:
                self._register(conn, None, tags)
                return True
            return False

    def set_note_category(self, note_id: str, category: str | None) -> bool:
        """Change a note's category. Returns True if the note exists."""
        with self._connect() as conn:
            cursor = conn.execute("""
                UPDATE notes SET category = ?, updated_at = ? WHERE id = ?
            """, (category, _now(), note_id))
            if cursor.rowcount > 0:
                self._register(conn, category, [])
                return True
            return False

    def notes_with_any_tag(self, names: list[str]) -> list[dict[str, Any]]:
        """Notes carrying at least one of the given tags, oldest first."""
        if not names:
            return []
        placeholders = ", ".join("?" for _ in names)
        with self._connect() as conn:
            rows = conn.execute(f"""
                SELECT * FROM notes
                WHERE EXISTS (
                    SELECT 1 FROM json_each(notes.tags)
                    WHERE json_each.value IN ({placeholders})
                )
                ORDER BY created_at ASC, rowid ASC
            """, list(names)).fetchall()
            return [_row_to_note(row) for row in rows]

    # Aggregates

    def list_categories(self) -> list[dict[str, Any]]:
        """Categories in use with their note counts, most used first."""
        with self._connect() as conn:
            rows = conn.execute("""
                SELECT category AS name, COUNT(*) AS count FROM notes
                WHERE category IS NOT NULL
                GROUP BY category
                ORDER BY count DESC, name ASC
            """).fetchall()
            return [dict(row) for row in rows]

    def list_tags(self) -> list[dict[str, Any]]:
        """Tags in use with their note counts, most used first.

        Tallied by scanning every note's tag list.
        """
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT tags FROM notes WHERE tags != '[]' ORDER BY created_at DESC, rowid DESC"
            ).fetchall()

        counts: Counter[str] = Counter()
        for row in rows:
            # A tag repeated inside one note still counts that note once
            counts.update(dict.fromkeys(json.loads(row["tags"])))
        return [{"name": name, "count": count} for name, count in counts.most_common()]

    def existing_categories(self) -> list[str]:
        """Distinct category names, most used first."""
        return [c["name"] for c in self.list_categories()]

    def existing_tags(self) -> list[str]:
        """Distinct tag names, most used first."""
        return [t["name"] for t in self.list_tags()]

    def count_category(self, name: str) -> int:
        """Number of notes filed under a category."""
        with self._connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM notes WHERE category = ?", (name,)
            ).fetchone()[0]

    def count_tag(self, name: str) -> int:
        """Number of notes carrying a tag."""
        with self._connect() as conn:
            return conn.execute(
                f"SELECT COUNT(*) FROM notes WHERE {HAS_TAG}", (name,)
            ).fetchone()[0]

    # Category and tag name tables

    def _register(
        self, conn: sqlite3.Connection, category: str | None, tags: list[str]
    ) -> None:
        now = _now()
        if category:
            conn.execute(
                "INSERT OR IGNORE INTO categories (name, created_at) VALUES (?, ?)",
                (category, now)
            )
        for tag in tags:
            conn.execute(
                "INSERT OR IGNORE INTO tags (name, created_at) VALUES (?, ?)",
                (tag, now)
            )

    def drop_category(self, name: str) -> bool:
        """Remove a category row. Returns True if one was removed."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM categories WHERE name = ?", (name,))
            return cursor.rowcount > 0

    def drop_tag(self, name: str) -> bool:
        """Remove a tag row. Returns True if one was removed."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM tags WHERE name = ?", (name,))
            return cursor.rowcount > 0

    def taxonomy_rows(self) -> dict[str, list[str]]:
        """Names currently held in the category and tag tables."""
        with self._connect() as conn:
            categories = [r[0] for r in conn.execute("SELECT name FROM categories ORDER BY name")]
            tags = [r[0] for r in conn.execute("SELECT name FROM tags ORDER BY name")]
        return {"categories": categories, "tags": tags}

    def get_stats(self) -> dict[str, Any]:
        """Get database statistics."""
        week_ago = (datetime.now(timezone.utc) - timedelta(days=7)).isoformat()

        with self._connect() as conn:
            total = conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0]
            categories = conn.execute(
                "SELECT COUNT(DISTINCT category) FROM notes WHERE category IS NOT NULL"
            ).fetchone()[0]
            this_week = conn.execute(
                "SELECT COUNT(*) FROM notes WHERE created_at > ?", (week_ago,)
            ).fetchone()[0]

        return {
            "total_notes": total,
            "categories": categories,
            "tags": len(self.list_tags()),
            "this_week": this_week,
        }
