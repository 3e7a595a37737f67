# ============================================================================
# LOGSEQ MCP - BACKEND MODULE
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# Public API:
#   LogseqClient          - HTTP client for the Logseq API server
#   LogseqMCPServer       - MCP server exposing the Logseq tools
#   create_logseq_server  - Factory function
#   LOGSEQ_TOOLS          - Tool definitions list
# ============================================================================

from .errors import (
    LogseqError,
    LogseqAPIError,
    LogseqDecodeError,
    LogseqOperationError,
)
from .logseq_client import LogseqClient, DEFAULT_BASE_URL
from .models import Block, InsertBlockOptions, Page, PageRef, SearchResult, TodoItem
from .tools import (
    LOGSEQ_TOOLS,
    LogseqMCPServer,
    create_logseq_server,
)

__all__ = [
    "LogseqError",
    "LogseqAPIError",
    "LogseqDecodeError",
    "LogseqOperationError",
    "LogseqClient",
    "DEFAULT_BASE_URL",
    "Block",
    "InsertBlockOptions",
    "Page",
    "PageRef",
    "SearchResult",
    "TodoItem",
    "LOGSEQ_TOOLS",
    "LogseqMCPServer",
    "create_logseq_server",
]
