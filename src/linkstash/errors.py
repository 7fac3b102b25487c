"""
Errors raised by linkstash operations.

There is one user-facing error type. Its message is meant to be shown
as-is; subclasses exist only so callers can tell a few cases apart.
"""


class StashError(Exception):
    """A failed linkstash operation, with a user-readable message."""


class NoteNotFoundError(StashError):
    """No note has the requested id."""

    def __init__(self, note_id: str):
        super().__init__(f"Note not found: {note_id}")
        self.note_id = note_id


class FetchError(StashError):
    """The extraction service could not provide the page content."""

    def __init__(self, detail: str = ""):
        super().__init__("Failed to fetch content")
        self.detail = detail
