"""
linkstash: personal bookmark manager.

Save a URL and linkstash will:
- Fetch a readable copy of the page
- Ask an LLM for a category, tags and a summary
- Keep it searchable and filterable by category and tag
"""

__version__ = "0.1.0"
