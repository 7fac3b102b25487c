"""
Note query state for linkstash.

Search text, filters and sort order travel together as one explicit
value that is handed to the listing functions.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SortField = Literal["created_at", "title"]
SortOrder = Literal["asc", "desc"]


class NoteQuery(BaseModel):
    """
    What to list and in which order.

    Assignment is validated, so `query.sort_by = "url"` raises.

    - search: case-insensitive substring of title or description
    - categories: note category must be one of these (OR)
    - tags: note must carry every one of these (AND)
    """

    model_config = ConfigDict(validate_assignment=True)

    search: str = ""
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    sort_by: SortField = "created_at"
    sort_order: SortOrder = "desc"

    @field_validator("search", mode="before")
    @classmethod
    def _strip_search(cls, value: str | None) -> str:
        return (value or "").strip()

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def _drop_blank(cls, value: list[str] | None) -> list[str]:
        return [v.strip() for v in (value or []) if v and v.strip()]

    def toggle_sort_order(self) -> None:
        """Flip between ascending and descending."""
        self.sort_order = "asc" if self.sort_order == "desc" else "desc"

    def clear_filters(self) -> None:
        """Reset search text and filters, keeping the sort."""
        self.search = ""
        self.categories = []
        self.tags = []

    @property
    def is_filtered(self) -> bool:
        return bool(self.search or self.categories or self.tags)
