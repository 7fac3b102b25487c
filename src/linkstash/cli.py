"""
CLI for linkstash.

Minimal CLI using stdlib argument handling for fast startup.
Subcommands are imported lazily to avoid startup overhead.

Usage:
    linkstash https://example.com      # Save a URL (primary interface)
    linkstash list --tag python        # Browse
    linkstash --help                   # Show help
"""

import sys


def print_help() -> None:
    """Print help message."""
    print("""linkstash - personal bookmark manager with AI classification

Usage:
    linkstash <url>                       Save a URL (fetch, classify, store)

Commands:
    linkstash add <url>                   Save a URL
    linkstash list [options]              List notes
        -s, --search TEXT                 Title/summary contains TEXT
        -c, --category NAME               In category (repeatable, any)
        -t, --tag NAME                    Has tag (repeatable, all)
        --sort created|title              Sort field (default: created)
        --asc                             Oldest/A-Z first
    linkstash find <text>                 Search titles and summaries
    linkstash show <id>                   Show a note
    linkstash delete <id>                 Delete a note
    linkstash categories                  Categories with counts
    linkstash tags                        Tags with counts
    linkstash rename-tag <old> <new>      Rename a tag everywhere
    linkstash merge-tags <src>... --into <target>
                                          Merge tags into one
    linkstash delete-tag <name>           Remove a tag from every note
    linkstash set-category <id> [name]    Set (or clear) a note's category
    linkstash set-tags <id> [tag...]      Replace a note's tags
    linkstash stats                       Show statistics
    linkstash health                      Check configuration and services

Options:
    linkstash --help, -h                  Show this help
    linkstash --version, -v               Show version

Note ids can be shortened to any unique prefix.""")


def print_version() -> None:
    """Print version."""
    from linkstash import __version__
    print(f"linkstash {__version__}")


def get_stash():
    """Build the Stash for a command, configuring logging on the way."""
    from linkstash.actions import Stash
    from linkstash.config import load_config, setup_logging

    config = load_config()
    setup_logging(config)
    return Stash(config)


def resolve_id(stash, arg: str) -> str:
    """Expand a short id prefix; fall back to the argument as given."""
    return stash.db.resolve_id(arg) or arg


def cmd_add(args: list[str]) -> int:
    """Save a URL."""
    from linkstash.display import format_note

    if len(args) != 1:
        print("Usage: linkstash add <url>", file=sys.stderr)
        return 1

    try:
        stash = get_stash()
        print(f"Saving {args[0]} ...")
        note = stash.save_url(args[0])
        print(format_note(note))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def parse_list_args(args: list[str]):
    """Turn list options into a NoteQuery."""
    from linkstash.query import NoteQuery

    query = NoteQuery()
    categories: list[str] = []
    tags: list[str] = []

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ("--search", "-s") and i + 1 < len(args):
            query.search = args[i + 1]
            i += 2
        elif arg in ("--category", "-c") and i + 1 < len(args):
            categories.append(args[i + 1])
            i += 2
        elif arg in ("--tag", "-t") and i + 1 < len(args):
            tags.append(args[i + 1])
            i += 2
        elif arg == "--sort" and i + 1 < len(args):
            query.sort_by = "title" if args[i + 1] == "title" else "created_at"
            i += 2
        elif arg == "--asc":
            query.sort_order = "asc"
            i += 1
        else:
            i += 1

    query.categories = categories
    query.tags = tags
    return query


def cmd_list(args: list[str]) -> int:
    """List notes with optional filters."""
    from linkstash.display import format_notes

    try:
        query = parse_list_args(args)
        stash = get_stash()
        notes = stash.get_notes(query=query)
        print(format_notes(notes))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_find(args: list[str]) -> int:
    """Search titles and summaries."""
    if not args:
        print("Usage: linkstash find <text>", file=sys.stderr)
        return 1
    return cmd_list(["--search", " ".join(args)])


def cmd_show(args: list[str]) -> int:
    """Show a single note."""
    from linkstash.display import format_note

    if not args:
        print("Usage: linkstash show <id>", file=sys.stderr)
        return 1

    try:
        stash = get_stash()
        note = stash.get_note(resolve_id(stash, args[0]))
        print(format_note(note))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_delete(args: list[str]) -> int:
    """Delete a note."""
    if not args:
        print("Usage: linkstash delete <id>", file=sys.stderr)
        return 1

    try:
        stash = get_stash()
        removed = stash.delete_note(resolve_id(stash, args[0]))
        print(f"Deleted: {removed['title']}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_categories() -> int:
    """Show categories with counts."""
    from linkstash.display import format_counts

    try:
        print(format_counts(get_stash().get_categories(), "CATEGORIES"))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_tags() -> int:
    """Show tags with counts."""
    from linkstash.display import format_counts

    try:
        print(format_counts(get_stash().get_tags(), "TAGS", prefix="#"))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_rename_tag(args: list[str]) -> int:
    """Rename a tag."""
    if len(args) != 2:
        print("Usage: linkstash rename-tag <old> <new>", file=sys.stderr)
        return 1

    try:
        count = get_stash().rename_tag(args[0], args[1])
        print(f"Renamed #{args[0]} → #{args[1]} on {count} notes")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_merge_tags(args: list[str]) -> int:
    """Merge tags into a target tag."""
    if "--into" not in args:
        print("Usage: linkstash merge-tags <src>... --into <target>", file=sys.stderr)
        return 1

    split = args.index("--into")
    sources = args[:split]
    rest = args[split + 1:]
    if not sources or len(rest) != 1:
        print("Usage: linkstash merge-tags <src>... --into <target>", file=sys.stderr)
        return 1

    try:
        count = get_stash().merge_tags(sources, rest[0])
        print(f"Merged {', '.join('#' + s for s in sources)} → #{rest[0]} on {count} notes")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_delete_tag(args: list[str]) -> int:
    """Remove a tag from every note."""
    if len(args) != 1:
        print("Usage: linkstash delete-tag <name>", file=sys.stderr)
        return 1

    try:
        count = get_stash().delete_tag(args[0])
        print(f"Removed #{args[0]} from {count} notes")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_set_category(args: list[str]) -> int:
    """Set or clear a note's category."""
    if not args:
        print("Usage: linkstash set-category <id> [name]", file=sys.stderr)
        return 1

    category = " ".join(args[1:]) or None

    try:
        stash = get_stash()
        note = stash.update_category(resolve_id(stash, args[0]), category)
        print(f"{note['title']}: category = {note['category'] or '-'}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_set_tags(args: list[str]) -> int:
    """Replace a note's tags."""
    if not args:
        print("Usage: linkstash set-tags <id> [tag...]", file=sys.stderr)
        return 1

    try:
        stash = get_stash()
        note = stash.update_tags(resolve_id(stash, args[0]), args[1:])
        tags = " ".join(f"#{t}" for t in note["tags"]) or "-"
        print(f"{note['title']}: tags = {tags}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stats() -> int:
    """Show database statistics."""
    from linkstash.display import format_stats

    try:
        print(format_stats(get_stash().get_stats()))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_health() -> int:
    """Show health report."""
    from linkstash.health import format_health_report, run_health_check

    print(format_health_report(run_health_check()))
    return 0


def looks_like_url(text: str) -> bool:
    return text.startswith(("http://", "https://"))


def main() -> int:
    """Main entry point."""
    args = sys.argv[1:]

    if not args:
        print_help()
        return 0

    first_arg = args[0]
    rest = args[1:]

    if first_arg in ("--help", "-h", "help"):
        print_help()
        return 0

    if first_arg in ("--version", "-v", "version"):
        print_version()
        return 0

    commands = {
        "add": lambda: cmd_add(rest),
        "list": lambda: cmd_list(rest),
        "find": lambda: cmd_find(rest),
        "show": lambda: cmd_show(rest),
        "delete": lambda: cmd_delete(rest),
        "categories": cmd_categories,
        "tags": cmd_tags,
        "rename-tag": lambda: cmd_rename_tag(rest),
        "merge-tags": lambda: cmd_merge_tags(rest),
        "delete-tag": lambda: cmd_delete_tag(rest),
        "set-category": lambda: cmd_set_category(rest),
        "set-tags": lambda: cmd_set_tags(rest),
        "stats": cmd_stats,
        "health": cmd_health,
    }

    if first_arg in commands:
        return commands[first_arg]()

    if looks_like_url(first_arg) and not rest:
        return cmd_add(args)

    print(f"Unknown command: {first_arg}", file=sys.stderr)
    print("Run 'linkstash --help' for usage.", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
