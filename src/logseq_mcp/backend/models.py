# ============================================================================
# LOGSEQ MCP - DOMAIN MODELS
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# Typed views of the entities returned by the Logseq HTTP API.
# Every identifier is assigned by Logseq; nothing here is generated locally.
# Unknown keys in API payloads are ignored on decode.
# ============================================================================

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "Page",
    "PageRef",
    "Block",
    "SearchResult",
    "TodoItem",
    "InsertBlockOptions",
    "TODO_MARKERS",
]

# Display order for grouped todos (most urgent first)
TODO_MARKERS: tuple[str, ...] = ("NOW", "DOING", "TODO", "LATER", "WAITING")


class Page(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    uuid: str
    original_name: str | None = Field(default=None, alias="original-name")
    properties: dict[str, Any] | None = None


class PageRef(BaseModel):
    id: int


class Block(BaseModel):
    """A node in a page's content tree. Children are owned, in display order."""

    uuid: str
    content: str
    page: PageRef | None = None
    properties: dict[str, Any] | None = None
    children: list["Block"] = Field(default_factory=list)
    level: int | None = None
    format: str | None = None


class SearchResult(BaseModel):
    block: Block
    # Datascript queries carry no ranking, so this is usually None
    score: float | None = None


class TodoItem(BaseModel):
    uuid: str
    content: str
    marker: str
    page_name: str
    priority: str | None = None


class InsertBlockOptions(BaseModel):
    """Placement options for insertBlock. All fields optional."""

    parent: str | None = None
    sibling: str | None = None
    before: bool | None = None
    properties: dict[str, Any] | None = None

    def to_api(self) -> dict[str, Any]:
        """Serialize without absent fields; an empty options object encodes as {}."""
        return self.model_dump(exclude_none=True)
