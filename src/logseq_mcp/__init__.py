# ============================================================================
# LOGSEQ MCP - Logseq Knowledge Graph Server
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# Exposes a Logseq graph's local HTTP API as MCP tools:
#   - Pages: list, get, read as markdown, create, delete
#   - Blocks: get, create, update, delete
#   - Queries: search, incomplete todos, raw Datascript
#   - Context & app state: current page/block/graph, store, user configs
#
# Usage:
#   export LOGSEQ_API_TOKEN=your_logseq_token
#   logseq-mcp
#
# See logseq_mcp.config for the environment variables.
# ============================================================================

import sys

# Version from package metadata
from importlib.metadata import version as _get_version
__version__ = _get_version("logseq-mcp")

# Public API
__all__ = [
    "__version__",
    "main",
]


def main() -> None:
    """Main entry point - runs the Logseq MCP server."""
    from .config import load_settings, setup_logging

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level)

    if not settings.http_mode and not settings.api_token:
        print("ERROR: LOGSEQ_API_TOKEN environment variable not set", file=sys.stderr)
        print("", file=sys.stderr)
        print("Enable the HTTP APIs server in Logseq and create a token, then set it:", file=sys.stderr)
        print("  export LOGSEQ_API_TOKEN=your_logseq_token", file=sys.stderr)
        sys.exit(1)

    print(
        f"[logseq-mcp] Starting server ({settings.transport}) for {settings.api_url}...",
        file=sys.stderr,
    )

    try:
        from .backend import create_logseq_server
        server = create_logseq_server(
            api_token=settings.api_token,
            base_url=settings.api_url,
            timeout=settings.timeout,
            http_mode=settings.http_mode,
        )
        server.run(
            transport=settings.transport,
            host=settings.host,
            port=settings.port,
        )
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
