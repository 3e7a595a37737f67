# ============================================================================
# LOGSEQ MCP - CORE MODULE
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# Shared core components for the MCP server:
#   - Base MCP server class
#   - Transport layer (STDIO + HTTP)
#   - Bearer token utilities
#
# ARCHITECTURE:
# LogseqMCPServer (backend/tools.py) extends this core with the Logseq tools.
# ============================================================================

from .auth import (
    validate_api_token,
    extract_token_from_request,
)
from .server import (
    BaseMCPServer,
    create_mcp_server,
    render_result,
)
from .transport import (
    run_stdio,
    run_http,
    create_http_app,
)

__all__ = [
    "validate_api_token",
    "extract_token_from_request",
    "BaseMCPServer",
    "create_mcp_server",
    "render_result",
    "run_stdio",
    "run_http",
    "create_http_app",
]
