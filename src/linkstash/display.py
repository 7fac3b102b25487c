"""
Terminal formatting for linkstash.
"""

import os
from typing import Any


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    BLUE = "\033[34m"
    BRIGHT_BLACK = "\033[90m"  # Gray
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        return not os.environ.get("NO_COLOR")


def c(text: str, *codes: str) -> str:
    """Apply color codes to text if colors are enabled."""
    if not Colors.enabled():
        return text
    return "".join(codes) + text + Colors.RESET


def short_id(note_id: str) -> str:
    """First 8 characters of a note id; enough to type back in."""
    return note_id[:8]


def format_tags(tags: list[str]) -> str:
    return " ".join(c(f"#{tag}", Colors.BRIGHT_MAGENTA) for tag in tags)


def format_notes(notes: list[dict[str, Any]], header: str = "NOTES") -> str:
    """Format a list of notes as a table."""
    if not notes:
        return c("No notes found.", Colors.DIM)

    lines = [c(f"━━━ {header} ({len(notes)}) ━━━", Colors.BOLD, Colors.BLUE), ""]
    lines.append(c(f"{'ID':8}  {'DATE':10}  {'CATEGORY':18}  TITLE", Colors.DIM))
    lines.append(c("─" * 70, Colors.DIM))

    for note in notes:
        category = (note.get("category") or "-")[:18]
        title = note["title"][:50]
        line = (
            f"{c(short_id(note['id']), Colors.BRIGHT_BLACK)}  "
            f"{note['created_at'][:10]}  "
            f"{c(f'{category:18}', Colors.BRIGHT_CYAN)}  "
            f"{title}"
        )
        if note.get("tags"):
            line += f"  {format_tags(note['tags'])}"
        lines.append(line)

    return "\n".join(lines)


def format_note(note: dict[str, Any]) -> str:
    """Format a single note with all its fields."""
    lines = [
        c(note["title"], Colors.BOLD),
        c(note["url"], Colors.BLUE),
        "",
        f"{c('id:', Colors.DIM)}       {note['id']}",
        f"{c('saved:', Colors.DIM)}    {note['created_at'][:19].replace('T', ' ')}",
        f"{c('category:', Colors.DIM)} {note.get('category') or '-'}",
        f"{c('tags:', Colors.DIM)}     {format_tags(note['tags']) or '-'}",
    ]
    if note.get("description"):
        lines.extend(["", note["description"]])
    return "\n".join(lines)


def format_counts(items: list[dict[str, Any]], header: str, prefix: str = "") -> str:
    """Format name/count pairs (categories or tags)."""
    if not items:
        return c(f"No {header.lower()} yet.", Colors.DIM)

    lines = [c(f"━━━ {header} ━━━", Colors.BOLD, Colors.BLUE), ""]
    for item in items:
        lines.append(f"{item['count']:>5}  {prefix}{item['name']}")
    return "\n".join(lines)


def format_stats(stats: dict[str, Any]) -> str:
    """Format database statistics."""
    lines = [
        "linkstash statistics",
        "-" * 30,
        f"Total notes:   {stats['total_notes']}",
        f"Categories:    {stats['categories']}",
        f"Tags:          {stats['tags']}",
        f"Added in 7d:   {stats['this_week']}",
    ]
    return "\n".join(lines)
