"""
MCP Server for linkstash.

Exposes the bookmark store as tools for assistants.
"""

import json
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from linkstash.actions import Stash
from linkstash.config import load_config, setup_logging
from linkstash.errors import StashError

# Create MCP server
server = Server("linkstash")


def get_stash() -> Stash:
    """Build a Stash for one tool call."""
    return Stash(load_config())


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _json(data: Any) -> list[TextContent]:
    return _text(json.dumps(data, ensure_ascii=False, indent=2))


def _string_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


NOTE_ID = {
    "type": "object",
    "properties": {
        "note_id": {"type": "string", "description": "The note ID"},
    },
    "required": ["note_id"],
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="linkstash_save",
            description="Save a URL. The page is fetched and classified into a category, tags and a summary.",
            inputSchema={
                "type": "object",
                "properties": {
                    "url": {"type": "string", "description": "The http(s) URL to save"},
                },
                "required": ["url"],
            },
        ),
        Tool(
            name="linkstash_list",
            description="List saved notes, newest first. Filters combine: any of the categories, all of the tags.",
            inputSchema={
                "type": "object",
                "properties": {
                    "search": {
                        "type": "string",
                        "description": "Case-insensitive text to find in title or summary",
                    },
                    "categories": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Match notes in any of these categories",
                    },
                    "tags": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Match notes carrying all of these tags",
                    },
                    "sort_by": {
                        "type": "string",
                        "enum": ["created_at", "title"],
                        "default": "created_at",
                    },
                    "sort_order": {
                        "type": "string",
                        "enum": ["asc", "desc"],
                        "default": "desc",
                    },
                },
            },
        ),
        Tool(
            name="linkstash_get",
            description="Get a single note by ID.",
            inputSchema=NOTE_ID,
        ),
        Tool(
            name="linkstash_delete",
            description="Delete a note by ID.",
            inputSchema=NOTE_ID,
        ),
        Tool(
            name="linkstash_categories",
            description="List categories in use with note counts.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="linkstash_tags",
            description="List tags in use with note counts.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="linkstash_rename_tag",
            description="Rename a tag on every note. Fails if the new name is already in use; merge instead.",
            inputSchema={
                "type": "object",
                "properties": {
                    "old_name": {"type": "string"},
                    "new_name": {"type": "string"},
                },
                "required": ["old_name", "new_name"],
            },
        ),
        Tool(
            name="linkstash_merge_tags",
            description="Merge several tags into one target tag.",
            inputSchema={
                "type": "object",
                "properties": {
                    "sources": {"type": "array", "items": {"type": "string"}},
                    "target": {"type": "string"},
                },
                "required": ["sources", "target"],
            },
        ),
        Tool(
            name="linkstash_delete_tag",
            description="Remove a tag from every note. The notes are kept.",
            inputSchema={
                "type": "object",
                "properties": {"name": {"type": "string"}},
                "required": ["name"],
            },
        ),
        Tool(
            name="linkstash_set_category",
            description="Set a note's category. Omit category to clear it.",
            inputSchema={
                "type": "object",
                "properties": {
                    "note_id": {"type": "string"},
                    "category": {"type": "string"},
                },
                "required": ["note_id"],
            },
        ),
        Tool(
            name="linkstash_set_tags",
            description="Replace a note's tags.",
            inputSchema={
                "type": "object",
                "properties": {
                    "note_id": {"type": "string"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["note_id", "tags"],
            },
        ),
        Tool(
            name="linkstash_stats",
            description="Get totals: notes, categories, tags, notes added in the last 7 days.",
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    handler = TOOLS.get(name)
    if handler is None:
        return _text(f"Unknown tool: {name}")
    try:
        return await handler(arguments or {})
    except StashError as e:
        return _text(f"Error: {e}")


async def tool_save(args: dict) -> list[TextContent]:
    """Save a URL."""
    url = args.get("url", "").strip()
    if not url:
        return _text("Error: No url provided")
    return _json(get_stash().save_url(url))


async def tool_list(args: dict) -> list[TextContent]:
    """List notes."""
    from linkstash.query import NoteQuery

    try:
        query = NoteQuery(
            search=args.get("search") or "",
            categories=_string_list(args.get("categories")),
            tags=_string_list(args.get("tags")),
            sort_by=args.get("sort_by") or "created_at",
            sort_order=args.get("sort_order") or "desc",
        )
    except ValueError as e:
        return _text(f"Error: Invalid query: {e}")
    return _json(get_stash().get_notes(query=query))


async def tool_get(args: dict) -> list[TextContent]:
    """Get one note."""
    note_id = args.get("note_id", "").strip()
    if not note_id:
        return _text("Error: No note_id provided")
    return _json(get_stash().get_note(note_id))


async def tool_delete(args: dict) -> list[TextContent]:
    """Delete a note."""
    note_id = args.get("note_id", "").strip()
    if not note_id:
        return _text("Error: No note_id provided")
    removed = get_stash().delete_note(note_id)
    return _text(f"Deleted: {removed['title']} ({removed['url']})")


async def tool_categories(args: dict) -> list[TextContent]:
    return _json(get_stash().get_categories())


async def tool_tags(args: dict) -> list[TextContent]:
    return _json(get_stash().get_tags())


async def tool_rename_tag(args: dict) -> list[TextContent]:
    """Rename a tag."""
    count = get_stash().rename_tag(args.get("old_name", ""), args.get("new_name", ""))
    return _json({"success": True, "updated_count": count})


async def tool_merge_tags(args: dict) -> list[TextContent]:
    """Merge tags."""
    count = get_stash().merge_tags(_string_list(args.get("sources")), args.get("target", ""))
    return _json({"success": True, "updated_count": count})


async def tool_delete_tag(args: dict) -> list[TextContent]:
    """Delete a tag."""
    count = get_stash().delete_tag(args.get("name", ""))
    return _json({"success": True, "updated_count": count})


async def tool_set_category(args: dict) -> list[TextContent]:
    """Set a note's category."""
    note_id = args.get("note_id", "").strip()
    if not note_id:
        return _text("Error: No note_id provided")
    return _json(get_stash().update_category(note_id, args.get("category")))


async def tool_set_tags(args: dict) -> list[TextContent]:
    """Replace a note's tags."""
    note_id = args.get("note_id", "").strip()
    if not note_id:
        return _text("Error: No note_id provided")
    return _json(get_stash().update_tags(note_id, _string_list(args.get("tags"))))


async def tool_stats(args: dict) -> list[TextContent]:
    return _json(get_stash().get_stats())


TOOLS = {
    "linkstash_save": tool_save,
    "linkstash_list": tool_list,
    "linkstash_get": tool_get,
    "linkstash_delete": tool_delete,
    "linkstash_categories": tool_categories,
    "linkstash_tags": tool_tags,
    "linkstash_rename_tag": tool_rename_tag,
    "linkstash_merge_tags": tool_merge_tags,
    "linkstash_delete_tag": tool_delete_tag,
    "linkstash_set_category": tool_set_category,
    "linkstash_set_tags": tool_set_tags,
    "linkstash_stats": tool_stats,
}


async def main():
    """Run the MCP server."""
    setup_logging(load_config())
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run() -> None:
    """Console script entry point."""
    import asyncio
    asyncio.run(main())


if __name__ == "__main__":
    run()
