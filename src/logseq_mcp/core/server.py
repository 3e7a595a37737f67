# ============================================================================
# LOGSEQ MCP - BASE SERVER
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# Base MCP server class: tool registry, protocol handlers, resources,
# transport selection and per-request token resolution.
# ============================================================================

import json
import logging
from typing import Any, Awaitable, Callable

from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.lowlevel.server import NotificationOptions
from mcp.types import (
    Tool,
    ToolAnnotations,
    TextContent,
    Resource,
)
from starlette.requests import Request

from .auth import validate_api_token, extract_token_from_request
from .transport import create_http_app, run_http, run_stdio

logger = logging.getLogger(__name__)

__all__ = [
    "BaseMCPServer",
    "create_mcp_server",
    "render_result",
]

ToolHandler = Callable[[str, dict[str, Any]], Awaitable[Any]]


# ============================================================================
# STATIC RESOURCE CONTENT
# ============================================================================

DOCS_GETTING_STARTED = """# Getting Started with Logseq MCP

## Quick Start

1. In Logseq, enable Settings > Features > HTTP APIs server
2. Start the API server and create an authorization token
3. Set environment variables:
   export LOGSEQ_API_TOKEN=<your token>
   export LOGSEQ_API_URL=http://localhost:12315  (optional)
4. Run the server: logseq-mcp

## Tools

- **Pages**: list_pages, get_page, get_page_content, create_page, delete_page
- **Blocks**: get_block, create_block, update_block, delete_block
- **Context**: get_current_page, get_current_block, get_current_graph
- **Queries**: search, find_incomplete_todos, datascript_query
- **App state**: get_state_from_store, get_user_configs

## Notes

- Page names are case-sensitive.
- Deleting a block also deletes its children. Deletes cannot be undone.
- datascript_query passes the query through unchanged; it is as powerful
  as Logseq's own database access.
"""


def create_mcp_server(
    name: str,
    version: str,
    instructions: str,
) -> Server:
    """Create a configured MCP Server instance."""
    return Server(
        name=name,
        version=version,
        instructions=instructions,
    )


def render_result(result: Any) -> str:
    """Text results pass through; anything else is pretty-printed JSON."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, default=str)


class BaseMCPServer:
    """Base MCP server with shared infrastructure.
    Provides: Server initialization, tool/resource handlers, transport layer.
    Subclasses add: the tool definitions and the tool handler.
    """

    def __init__(
        self,
        name: str,
        version: str,
        instructions: str,
        api_token: str | None = None,
        http_mode: bool = False,
    ) -> None:
        self.name = name
        self.version = version
        self.instructions = instructions
        self.http_mode = http_mode

        # STDIO mode has no per-request headers, so the token is mandatory
        if not http_mode:
            is_valid, error = validate_api_token(api_token)
            if not is_valid:
                raise ValueError(error)
        self.api_token = api_token

        self.server = create_mcp_server(name, version, instructions)

        # Tools and handlers (set by subclass)
        self._tools: list[dict] = []
        self._tool_handlers: dict[str, ToolHandler] = {}

        self._static_resources: dict[str, str] = {
            "logseq://docs/getting-started": DOCS_GETTING_STARTED,
        }

    def register_tools(self, tools: list[dict]) -> None:
        self._tools.extend(tools)

    def register_tool_handler(self, name: str, handler: ToolHandler) -> None:
        self._tool_handlers[name] = handler

    def setup_handlers(self) -> None:
        """Set up all MCP protocol handlers. Call AFTER registering tools."""
        self._setup_tool_handlers()
        self._setup_resource_handlers()

    def list_tool_objects(self) -> list[Tool]:
        tools_list = []
        for tool in self._tools:
            annotations = None
            if "annotations" in tool:
                ann = tool["annotations"]
                annotations = ToolAnnotations(
                    readOnlyHint=ann.get("readOnlyHint"),
                    destructiveHint=ann.get("destructiveHint"),
                    idempotentHint=ann.get("idempotentHint"),
                    openWorldHint=ann.get("openWorldHint"),
                )
            tools_list.append(Tool(
                name=tool["name"],
                title=tool.get("title"),
                description=tool["description"],
                inputSchema=tool["inputSchema"],
                annotations=annotations,
            ))
        return tools_list

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> str:
        """Run one tool call and render its result as text.

        Raises on failure; the MCP layer turns the exception into an error
        result and the server keeps serving.
        """
        valid_tools = [t["name"] for t in self._tools]
        if name not in valid_tools:
            raise ValueError(f"Unknown tool: {name}")

        handler = self._tool_handlers.get(name) or self._tool_handlers.get("*")
        if not handler:
            raise ValueError(f"No handler registered for tool: {name}")

        try:
            result = await handler(name, arguments or {})
        except Exception as e:
            logger.error(f"Error in {name}: {e}")
            raise
        return render_result(result)

    def _setup_tool_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.list_tool_objects()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict) -> list[TextContent]:
            text = await self.dispatch(name, arguments)
            return [TextContent(type="text", text=text)]

    def _setup_resource_handlers(self) -> None:
        @self.server.list_resources()
        async def list_resources() -> list[Resource]:
            resources = []
            for uri in self._static_resources:
                name = uri.split("/")[-1].replace("-", " ").title()
                resources.append(Resource(
                    uri=uri,
                    name=f"{name} Guide",
                    description=f"Documentation: {name}",
                    mimeType="text/markdown",
                ))
            return resources

        @self.server.read_resource()
        async def read_resource(uri) -> str:
            return self.read_static_resource(str(uri))

    def read_static_resource(self, uri: str) -> str:
        if uri in self._static_resources:
            return self._static_resources[uri]
        raise ValueError(f"Unknown resource: {uri}")

    def get_api_token_for_request(self) -> str | None:
        """Get the Logseq token for the current request.
        STDIO mode: Returns the configured token.
        HTTP mode: Authorization header of the request, else the configured token.
        """
        if not self.http_mode:
            return self.api_token

        # request_context raises LookupError outside of a request
        try:
            ctx = self.server.request_context
        except LookupError:
            return self.api_token

        request = getattr(ctx, "request", None)
        if request is None or not isinstance(request, Request):
            return self.api_token

        return extract_token_from_request(request) or self.api_token

    def get_init_options(self) -> InitializationOptions:
        return InitializationOptions(
            server_name=self.name,
            server_version=self.version,
            capabilities=self.server.get_capabilities(
                notification_options=NotificationOptions(),
                experimental_capabilities={},
            ),
            instructions=self.instructions,
        )


    def build_server_card(self) -> dict[str, Any]:
        """Discovery document listing what this server actually registered."""
        caps = self.server.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={},
        )
        return {
            "name": self.name,
            "version": self.version,
            "description": self.instructions,
            "capabilities": {
                "tools": caps.tools is not None,
                "resources": caps.resources is not None,
                "prompts": caps.prompts is not None,
            },
            "tools": [tool["name"] for tool in self._tools],
            "resources": list(self._static_resources),
            "authentication": {
                "type": "bearer",
                "header": "Authorization",
                "required": self.api_token is None,
            },
        }

    def http_app(self) -> Any:
        return create_http_app(
            self.server,
            self.build_server_card(),
            on_shutdown=self.close,
        )

    async def close(self) -> None:
        """Release transport resources. Called once the server stops."""

    def run(
        self,
        transport: str = "stdio",
        host: str = "127.0.0.1",
        port: int = 8000,
    ) -> None:
        """Run the MCP server with specified transport."""
        if transport == "http":
            run_http(self.http_app(), host=host, port=port)
        else:
            run_stdio(
                self.server,
                self.get_init_options(),
                on_shutdown=self.close,
            )
