# ============================================================================
# LOGSEQ MCP - LOGSEQ TOOLS
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# 17 Logseq tools:
#
# PAGES (5):
#   list_pages            - Names of all pages in the graph
#   get_page              - Page metadata as JSON
#   get_page_content      - Page block tree as markdown bullets
#   create_page           - Create a page with optional properties
#   delete_page           - Delete a page and all its blocks
#
# BLOCKS (4):
#   get_block             - Block as JSON
#   create_block          - Insert a block under a parent or next to a sibling
#   update_block          - Replace a block's content (and properties)
#   delete_block          - Delete a block and its children
#
# CONTEXT (3):
#   get_current_page / get_current_block / get_current_graph
#
# QUERIES (3):
#   search                - Substring search over block content
#   find_incomplete_todos - NOW / DOING / TODO / LATER / WAITING blocks
#   datascript_query      - Raw Datascript query passthrough
#
# APP STATE (2):
#   get_state_from_store / get_user_configs
# ============================================================================

import json
import logging
from typing import Any

from .. import __version__
from ..core import BaseMCPServer
from .formatters import (
    format_blocks_as_markdown,
    format_page_list,
    format_search_results,
    format_todos,
)
from .logseq_client import DEFAULT_BASE_URL, LogseqClient
from .models import InsertBlockOptions

logger = logging.getLogger(__name__)

__all__ = [
    "LOGSEQ_TOOLS",
    "LogseqMCPServer",
    "create_logseq_server",
]


def _no_args() -> dict[str, Any]:
    return {"type": "object", "properties": {}, "additionalProperties": False}


_READ_ONLY = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": False,
}

_WRITE = {
    "readOnlyHint": False,
    "destructiveHint": False,
    "idempotentHint": False,
    "openWorldHint": False,
}

_DESTRUCTIVE = {
    "readOnlyHint": False,
    "destructiveHint": True,
    "idempotentHint": False,
    "openWorldHint": False,
}


# ============================================================================
# TOOL DEFINITIONS
# ============================================================================

LOGSEQ_TOOLS: list[dict[str, Any]] = [
    # ================================================================
    # PAGES (5 tools)
    # ================================================================
    {
        "name": "list_pages",
        "title": "List Pages",
        "description": (
            "List all pages in the current Logseq graph. Returns page names that "
            "can be used with the other page tools."
        ),
        "inputSchema": _no_args(),
        "annotations": _READ_ONLY,
    },
    {
        "name": "get_page_content",
        "title": "Get Page Content",
        "description": (
            "Get the content of a page formatted as nested markdown bullets. Use this "
            "to read the structure of a page's blocks."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "page_name": {
                    "type": "string",
                    "description": (
                        "Name or UUID of the page. Page names are case-sensitive and "
                        "must match exactly as they appear in Logseq."
                    ),
                },
            },
            "required": ["page_name"],
            "additionalProperties": False,
        },
        "annotations": _READ_ONLY,
    },
    {
        "name": "create_page",
        "title": "Create Page",
        "description": (
            "Create a new page. Optionally set page properties such as tags, "
            "template, alias, public, or any custom property."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Name of the new page",
                },
                "properties": {
                    "type": "object",
                    "description": "Optional page properties",
                    "properties": {
                        "tags": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Tags to apply to the page",
                        },
                        "template": {
                            "type": "string",
                            "description": "Template to use for the page",
                        },
                        "alias": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Alternative names for the page",
                        },
                        "public": {
                            "type": "boolean",
                            "description": "Whether the page is published",
                        },
                        "filters": {
                            "type": "object",
                            "description": "Filters to apply to the page view",
                        },
                    },
                    "additionalProperties": True,
                },
            },
            "required": ["name"],
            "additionalProperties": False,
        },
        "annotations": _WRITE,
    },
    {
        "name": "get_page",
        "title": "Get Page",
        "description": (
            "Get metadata for a page by name or UUID: name, UUID, original name "
            "and properties."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "name_or_uuid": {
                    "type": "string",
                    "description": "Page name (case-sensitive) or page UUID",
                },
            },
            "required": ["name_or_uuid"],
            "additionalProperties": False,
        },
        "annotations": _READ_ONLY,
    },
    {
        "name": "delete_page",
        "title": "Delete Page",
        "description": (
            "Delete a page by name, including all of its blocks. "
            "DESTRUCTIVE - cannot be undone."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "page_name": {
                    "type": "string",
                    "description": "Name of the page to delete, exactly as it appears in Logseq",
                },
            },
            "required": ["page_name"],
            "additionalProperties": False,
        },
        "annotations": _DESTRUCTIVE,
    },

    # ================================================================
    # BLOCKS (4 tools)
    # ================================================================
    {
        "name": "get_block",
        "title": "Get Block",
        "description": (
            "Get a block by UUID: content, properties, children and metadata."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "uuid": {
                    "type": "string",
                    "description": (
                        "UUID of the block. UUIDs come from create_block, search, "
                        "find_incomplete_todos or datascript_query."
                    ),
                },
            },
            "required": ["uuid"],
            "additionalProperties": False,
        },
        "annotations": _READ_ONLY,
    },
    {
        "name": "create_block",
        "title": "Create Block",
        "description": (
            "Insert a new block. Give a parent page/block to append under, or a "
            "sibling block to insert next to. Returns the new block's UUID."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "content": {
                    "type": "string",
                    "description": "Block content in markdown, including Logseq syntax",
                },
                "parent": {
                    "type": "string",
                    "description": (
                        "Parent page name or block UUID. Without parent or sibling the "
                        "block goes to the current page."
                    ),
                },
                "sibling": {
                    "type": "string",
                    "description": "UUID of a block to insert next to, at the same level",
                },
                "before": {
                    "type": "boolean",
                    "description": "Insert before the sibling instead of after it",
                },
                "properties": {
                    "type": "object",
                    "description": "Optional block properties",
                    "additionalProperties": True,
                },
            },
            "required": ["content"],
            "additionalProperties": False,
        },
        "annotations": _WRITE,
    },
    {
        "name": "update_block",
        "title": "Update Block",
        "description": (
            "Replace the content of an existing block. Optionally update its properties."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "uuid": {
                    "type": "string",
                    "description": "UUID of an existing block",
                },
                "content": {
                    "type": "string",
                    "description": "New markdown content; replaces the existing content",
                },
                "properties": {
                    "type": "object",
                    "description": "Optional block properties, e.g. {'priority': 'high'}",
                    "additionalProperties": True,
                },
            },
            "required": ["uuid", "content"],
            "additionalProperties": False,
        },
        "annotations": {**_WRITE, "idempotentHint": True},
    },
    {
        "name": "delete_block",
        "title": "Delete Block",
        "description": (
            "Delete a block by UUID, including all of its children. "
            "DESTRUCTIVE - cannot be undone."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "uuid": {
                    "type": "string",
                    "description": "UUID of the block to delete",
                },
            },
            "required": ["uuid"],
            "additionalProperties": False,
        },
        "annotations": _DESTRUCTIVE,
    },

    # ================================================================
    # CONTEXT (3 tools)
    # ================================================================
    {
        "name": "get_current_page",
        "title": "Get Current Page",
        "description": "Get the page currently open in the Logseq window.",
        "inputSchema": _no_args(),
        "annotations": _READ_ONLY,
    },
    {
        "name": "get_current_block",
        "title": "Get Current Block",
        "description": "Get the block currently being edited in the Logseq window.",
        "inputSchema": _no_args(),
        "annotations": _READ_ONLY,
    },
    {
        "name": "get_current_graph",
        "title": "Get Current Graph",
        "description": "Get information about the current graph: name, path and url.",
        "inputSchema": _no_args(),
        "annotations": _READ_ONLY,
    },

    # ================================================================
    # QUERIES (3 tools)
    # ================================================================
    {
        "name": "search",
        "title": "Search Blocks",
        "description": (
            "Search block content across all pages. Returns matching blocks; "
            "matching is case-sensitive substring matching."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Text to look for in block content",
                },
            },
            "required": ["query"],
            "additionalProperties": False,
        },
        "annotations": _READ_ONLY,
    },
    {
        "name": "find_incomplete_todos",
        "title": "Find Incomplete Todos",
        "description": (
            "List all incomplete todos across the graph, grouped by marker "
            "(NOW, DOING, TODO, LATER, WAITING) with page names and UUIDs."
        ),
        "inputSchema": _no_args(),
        "annotations": _READ_ONLY,
    },
    {
        "name": "datascript_query",
        "title": "Datascript Query",
        "description": (
            "Run a Datascript query against the Logseq database and return the raw "
            "result. Use for retrievals the other tools cannot express; requires "
            "knowledge of Logseq's schema."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        "Datascript query, e.g. '[:find ?content :where "
                        "[?b :block/content ?content]]'"
                    ),
                },
            },
            "required": ["query"],
            "additionalProperties": False,
        },
        "annotations": _READ_ONLY,
    },

    # ================================================================
    # APP STATE (2 tools)
    # ================================================================
    {
        "name": "get_state_from_store",
        "title": "Get App State",
        "description": (
            "Read a value from Logseq's application state store by key path, "
            "e.g. 'ui/theme' or 'ui/sidebar-open'."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "key": {
                    "type": "string",
                    "description": "State key path, e.g. 'config/preferred-format'",
                },
            },
            "required": ["key"],
            "additionalProperties": False,
        },
        "annotations": _READ_ONLY,
    },
    {
        "name": "get_user_configs",
        "title": "Get User Configs",
        "description": "Get the user's Logseq configuration and preferences.",
        "inputSchema": _no_args(),
        "annotations": _READ_ONLY,
    },
]


# ============================================================================
# LOGSEQ MCP SERVER
# ============================================================================

class LogseqMCPServer(BaseMCPServer):
    """Logseq MCP server.

    Extends BaseMCPServer with a LogseqClient and the 17 tools above.
    Each tool call is one (occasionally two) round trips to the Logseq API;
    failures surface as tool errors and never stop the server.
    """

    INSTRUCTIONS = """Logseq MCP Server - read and edit a Logseq knowledge graph

READING:
- list_pages → page names; get_page_content → a page as markdown bullets
- search → blocks containing some text; get_block → one block by UUID
- find_incomplete_todos → open tasks grouped by marker

WRITING:
- create_page, create_block (under `parent` or next to `sibling`), update_block

DESTRUCTIVE:
- delete_block, delete_page (cannot be undone)

Page names are case-sensitive. Block UUIDs come from search, create_block,
find_incomplete_todos or datascript_query."""

    def __init__(
        self,
        api_token: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http_mode: bool = False,
        client: LogseqClient | None = None,
    ) -> None:
        super().__init__(
            name="logseq-mcp-server",
            version=__version__,
            instructions=self.INSTRUCTIONS,
            api_token=api_token,
            http_mode=http_mode,
        )

        self._client = client or LogseqClient(
            base_url=base_url, token=api_token or "", timeout=timeout,
        )

        self.register_tools(LOGSEQ_TOOLS)
        self.register_tool_handler("*", self._handle_tool)

        # Set up MCP protocol handlers
        self.setup_handlers()

    async def _get_client(self) -> LogseqClient:
        """Client carrying the token for the current request."""
        token = self.get_api_token_for_request()
        if not token:
            raise ValueError("No Logseq API token available")
        return await self._client.with_token(token)

    async def close(self) -> None:
        await self._client.close()

    # ====================================================================
    # TOOL HANDLER - routes all 17 tools
    # ====================================================================

    async def _handle_tool(self, name: str, arguments: dict) -> Any:
        """Route tool calls to the appropriate client operation."""
        logger.debug(f"Tool call {name} with arguments {arguments!r}")
        client = await self._get_client()

        # ============================================================
        # PAGES
        # ============================================================

        if name == "list_pages":
            pages = await client.get_all_pages()
            return format_page_list(pages)

        if name == "get_page_content":
            blocks = await client.get_page_blocks_tree(_require(arguments, "page_name"))
            return format_blocks_as_markdown(blocks)

        if name == "create_page":
            page = await client.create_page(
                _require(arguments, "name"), arguments.get("properties"),
            )
            return f"Created page: {page.name}"

        if name == "get_page":
            page = await client.get_page(_require(arguments, "name_or_uuid"))
            return _to_json(page.model_dump(by_alias=True))

        if name == "delete_page":
            page_name = _require(arguments, "page_name")
            await client.delete_page(page_name)
            return f"Successfully deleted page: {page_name}"

        # ============================================================
        # BLOCKS
        # ============================================================

        if name == "get_block":
            block = await client.get_block(_require(arguments, "uuid"))
            return _to_json(block.model_dump())

        if name == "create_block":
            opts = InsertBlockOptions(
                parent=arguments.get("parent"),
                sibling=arguments.get("sibling"),
                before=arguments.get("before"),
                properties=arguments.get("properties"),
            )
            block = await client.insert_block(_require(arguments, "content"), opts)
            return f"Created block with UUID: {block.uuid}"

        if name == "update_block":
            block = await client.update_block(
                _require(arguments, "uuid"),
                _require(arguments, "content"),
                arguments.get("properties"),
            )
            return f"Updated block with UUID: {block.uuid}"

        if name == "delete_block":
            uuid = _require(arguments, "uuid")
            await client.remove_block(uuid)
            return f"Successfully deleted block with UUID: {uuid}"

        # ============================================================
        # CONTEXT
        # ============================================================

        if name == "get_current_page":
            page = await client.get_current_page()
            return _to_json(page.model_dump(by_alias=True))

        if name == "get_current_block":
            block = await client.get_current_block()
            return _to_json(block.model_dump())

        if name == "get_current_graph":
            return _to_json(await client.get_current_graph())

        # ============================================================
        # QUERIES
        # ============================================================

        if name == "search":
            results = await client.search(_require(arguments, "query"))
            return format_search_results(results)

        if name == "find_incomplete_todos":
            todos = await client.find_incomplete_todos()
            return format_todos(todos)

        if name == "datascript_query":
            return _to_json(await client.datascript_query(_require(arguments, "query")))

        # ============================================================
        # APP STATE
        # ============================================================

        if name == "get_state_from_store":
            return _to_json(await client.get_state_from_store(_require(arguments, "key")))

        if name == "get_user_configs":
            return _to_json(await client.get_user_configs())

        raise ValueError(f"Unknown tool: {name}")


def _require(arguments: dict, key: str) -> Any:
    value = arguments.get(key)
    if value is None:
        raise ValueError(f"Missing {key} parameter")
    return value


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


# ============================================================================
# FACTORY FUNCTION
# ============================================================================

def create_logseq_server(
    api_token: str | None = None,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = 30.0,
    http_mode: bool = False,
) -> LogseqMCPServer:
    """Factory function to create a Logseq MCP server."""
    return LogseqMCPServer(
        api_token=api_token,
        base_url=base_url,
        timeout=timeout,
        http_mode=http_mode,
    )
