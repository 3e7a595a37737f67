# ============================================================================
# LOGSEQ MCP - TEXT FORMATTERS
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# Render typed Logseq results as text for tool responses.
# Pure functions: no I/O, deterministic for a given input.
# ============================================================================

import logging
from collections.abc import Iterable, Sequence

from .models import Block, Page, SearchResult, TODO_MARKERS, TodoItem

logger = logging.getLogger(__name__)

__all__ = [
    "format_blocks_as_markdown",
    "format_search_results",
    "format_todos",
    "format_page_list",
]


def format_blocks_as_markdown(blocks: Iterable[Block]) -> str:
    """Render a block tree as nested markdown bullets, two spaces per level."""
    lines: list[str] = []
    for block in blocks:
        _append_block(lines, block, 0)
    return "".join(lines)


def _append_block(lines: list[str], block: Block, depth: int) -> None:
    lines.append(f"{'  ' * depth}* {block.content}\n")
    for child in block.children:
        _append_block(lines, child, depth + 1)


def format_search_results(results: Sequence[SearchResult]) -> str:
    if not results:
        return "No results found."

    parts = [f"Found {len(results)} results:\n\n"]
    for i, result in enumerate(results, start=1):
        parts.append(f"{i}. {result.block.content}\n")
        if result.block.page is not None:
            parts.append(f"   Page ID: {result.block.page.id}\n")
        if result.score is not None:
            parts.append(f"   Score: {result.score:.2f}\n")
        parts.append("\n")
    return "".join(parts)


def format_todos(todos: Sequence[TodoItem]) -> str:
    """Group todos by marker, most urgent first, followed by a count summary."""
    if not todos:
        return "No incomplete todos found."

    by_marker: dict[str, list[TodoItem]] = {}
    for todo in todos:
        by_marker.setdefault(todo.marker, []).append(todo)

    unknown = set(by_marker) - set(TODO_MARKERS)
    if unknown:
        logger.debug(f"Not displaying todos with unknown markers: {sorted(unknown)}")

    parts = [f"Found {len(todos)} incomplete todos:\n\n"]
    for marker in TODO_MARKERS:
        group = by_marker.get(marker)
        if not group:
            continue
        parts.append(f"## {marker} ({len(group)} items)\n")
        for i, todo in enumerate(group, start=1):
            parts.append(f"{i}. **{todo.marker}** {todo.content}\n")
            parts.append(f"   Page: {todo.page_name}\n")
            parts.append(f"   UUID: {todo.uuid}\n")
            parts.append("\n")

    parts.append("---\n")
    parts.append("**Summary by Status:**\n")
    for marker in TODO_MARKERS:
        if marker in by_marker:
            parts.append(f"- {marker}: {len(by_marker[marker])} todos\n")
    return "".join(parts)


def format_page_list(pages: Iterable[Page]) -> str:
    return "\n".join(f"- {page.name}" for page in pages)
