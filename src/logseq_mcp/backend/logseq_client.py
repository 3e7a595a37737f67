# ============================================================================
# LOGSEQ MCP - LOGSEQ API CLIENT
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# HTTP client for the Logseq local HTTP API server.
# Every operation is a single RPC: POST {base_url}/api with
# {"method": "logseq.Editor.getPage", "args": [...]}.
#
# NORMALIZATION:
#   insertBlock answers in several shapes (null, {uuid}, "uuid", full block).
#   classify_insert_response() tags the raw payload; insert_block() dispatches
#   on the tag and fetches the full block when only the uuid came back.
#   updateBlock may answer null on success; the block is then re-fetched.
#   removeBlock / deletePage answer null on success.
# ============================================================================

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from .errors import LogseqAPIError, LogseqDecodeError, LogseqError, LogseqOperationError
from .models import (
    Block,
    InsertBlockOptions,
    Page,
    SearchResult,
    TODO_MARKERS,
    TodoItem,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:12315"
API_PATH = "/api"

__all__ = [
    "LogseqClient",
    "DEFAULT_BASE_URL",
    "classify_insert_response",
    "NullResponse",
    "ObjectWithUuid",
    "BareString",
    "FullObject",
    "Unrecognized",
]


# ============================================================================
# INSERT RESPONSE SHAPES
# ============================================================================

@dataclass(frozen=True)
class NullResponse:
    pass


@dataclass(frozen=True)
class ObjectWithUuid:
    uuid: str


@dataclass(frozen=True)
class BareString:
    uuid: str


@dataclass(frozen=True)
class FullObject:
    block: Block


@dataclass(frozen=True)
class Unrecognized:
    payload: Any


InsertResponse = NullResponse | ObjectWithUuid | BareString | FullObject | Unrecognized


def classify_insert_response(payload: Any) -> InsertResponse:
    """Tag a raw insertBlock payload.

    A complete block (uuid + content) is taken as-is; an object that only
    carries a string uuid needs a follow-up fetch.
    """
    if payload is None:
        return NullResponse()
    if isinstance(payload, str):
        return BareString(payload)
    if isinstance(payload, dict):
        try:
            return FullObject(Block.model_validate(payload))
        except ValidationError:
            pass
        uuid = payload.get("uuid")
        if isinstance(uuid, str):
            return ObjectWithUuid(uuid)
    return Unrecognized(payload)


# ============================================================================
# DATASCRIPT QUERIES
# ============================================================================

SEARCH_QUERY_TEMPLATE = (
    "[:find ?uuid ?content "
    ":where [?b :block/uuid ?uuid] [?b :block/content ?content] "
    '[(clojure.string/includes? ?content "{text}")]]'
)

INCOMPLETE_TODOS_QUERY = (
    "[:find ?uuid ?content ?marker ?page-name\n"
    "  :where\n"
    "  [?b :block/uuid ?uuid]\n"
    "  [?b :block/content ?content]\n"
    "  [?b :block/marker ?marker]\n"
    "  [?b :block/page ?p]\n"
    "  [?p :block/name ?page-name]\n"
    "  [(contains? #{" + " ".join(f'"{m}"' for m in TODO_MARKERS) + "} ?marker)]]"
)


def _string_rows(payload: Any, width: int) -> list[list[str]]:
    """Keep query rows that have at least `width` leading string fields."""
    if not isinstance(payload, list):
        return []
    rows = []
    for row in payload:
        if not isinstance(row, list) or len(row) < width:
            logger.debug(f"Skipping malformed query row: {row!r}")
            continue
        fields = row[:width]
        if not all(isinstance(f, str) for f in fields):
            logger.debug(f"Skipping query row with non-string fields: {row!r}")
            continue
        rows.append(fields)
    return rows


# ============================================================================
# LOGSEQ CLIENT
# ============================================================================

class LogseqClient:
    """Async client for the Logseq HTTP API.

    Holds only connection configuration (base URL, token, httpx client), so a
    single instance can serve concurrent tool calls. No retries, no caching:
    every read returns a fresh snapshot.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str = "",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def with_token(self, token: str) -> "LogseqClient":
        """A client for another token that shares this client's connection pool."""
        if token == self.token:
            return self
        return LogseqClient(
            base_url=self.base_url,
            token=token,
            timeout=self.timeout,
            http_client=await self._get_client(),
        )

    async def close(self) -> None:
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    async def call_api(self, method: str, args: list[Any] | None = None) -> Any:
        """Invoke one remote method and return its JSON result verbatim."""
        logger.debug(f"Making API call to {self.base_url} with method: {method}")
        client = await self._get_client()
        resp = await client.post(
            f"{self.base_url}{API_PATH}",
            json={"method": method, "args": args or []},
            headers=self._headers(),
        )
        if resp.is_success:
            try:
                return resp.json()
            except ValueError as e:
                raise LogseqDecodeError(method, f"invalid JSON body: {e}") from e

        try:
            error_text = resp.text
        except (UnicodeDecodeError, httpx.HTTPError):
            error_text = "Unknown error"
        logger.error(f"API call failed with status {resp.status_code}: {error_text}")
        raise LogseqAPIError(resp.status_code, error_text)

    @staticmethod
    def _decode(method: str, payload: Any, model: Any) -> Any:
        try:
            return TypeAdapter(model).validate_python(payload)
        except ValidationError as e:
            raise LogseqDecodeError(method, str(e)) from e

    async def _call_typed(self, method: str, args: list[Any], model: Any) -> Any:
        result = await self.call_api(method, args)
        return self._decode(method, result, model)

    # ====================================================================
    # PAGES
    # ====================================================================

    async def get_all_pages(self) -> list[Page]:
        return await self._call_typed("logseq.Editor.getAllPages", [], list[Page])

    async def get_page(self, name_or_uuid: str) -> Page:
        return await self._call_typed("logseq.Editor.getPage", [name_or_uuid], Page)

    async def create_page(
        self, name: str, properties: dict[str, Any] | None = None,
    ) -> Page:
        return await self._call_typed(
            "logseq.Editor.createPage", [name, properties], Page,
        )

    async def get_page_blocks_tree(self, page_name_or_uuid: str) -> list[Block]:
        return await self._call_typed(
            "logseq.Editor.getPageBlocksTree", [page_name_or_uuid], list[Block],
        )

    async def get_current_page(self) -> Page:
        return await self._call_typed("logseq.Editor.getCurrentPage", [], Page)

    async def delete_page(self, page_name: str) -> None:
        result = await self.call_api("logseq.Editor.deletePage", [page_name])
        logger.debug(f"delete_page result: {result!r}")
        self._check_void_result(result, "Failed to delete page")

    # ====================================================================
    # BLOCKS
    # ====================================================================

    async def get_block(self, uuid: str) -> Block:
        return await self._call_typed("logseq.Editor.getBlock", [uuid], Block)

    async def get_current_block(self) -> Block:
        return await self._call_typed("logseq.Editor.getCurrentBlock", [], Block)

    async def insert_block(
        self, content: str, opts: InsertBlockOptions | None = None,
    ) -> Block:
        """Insert a block and return it, whatever shape insertBlock answers in.

        If Logseq only hands back the new uuid and the follow-up fetch fails,
        a minimal block built from the request is returned instead of an error.
        """
        if opts is None:
            opts = InsertBlockOptions()
        args = [content, opts.to_api()]
        logger.debug(f"insert_block args: {args!r}")
        result = await self.call_api("logseq.Editor.insertBlock", args)
        logger.debug(f"insert_block result: {result!r}")

        match classify_insert_response(result):
            case NullResponse():
                raise LogseqOperationError(
                    "insertBlock returned null - block creation may have failed"
                )
            case FullObject(block=block):
                return block
            case ObjectWithUuid(uuid=uuid) | BareString(uuid=uuid):
                return await self._fetch_inserted(uuid, content, opts)
            case Unrecognized(payload=payload):
                raise LogseqOperationError(
                    "Unexpected insertBlock response format: "
                    + json.dumps(payload, indent=2, default=str)
                )

    async def _fetch_inserted(
        self, uuid: str, content: str, opts: InsertBlockOptions,
    ) -> Block:
        logger.debug(f"Fetching block details for UUID: {uuid}")
        try:
            return await self.get_block(uuid)
        except (LogseqError, httpx.HTTPError) as e:
            logger.warning(f"Failed to fetch block details for {uuid}: {e}")
            return Block(uuid=uuid, content=content, properties=opts.properties)

    async def update_block(
        self,
        uuid: str,
        content: str,
        properties: dict[str, Any] | None = None,
    ) -> Block:
        args: list[Any] = [uuid, content]
        if properties is not None:
            args.append(properties)
        logger.debug(f"update_block args: {args!r}")
        result = await self.call_api("logseq.Editor.updateBlock", args)
        logger.debug(f"update_block result: {result!r}")

        # updateBlock answers null on success
        if result is None:
            return await self.get_block(uuid)
        return self._decode("logseq.Editor.updateBlock", result, Block)

    async def remove_block(self, block_uuid: str) -> None:
        result = await self.call_api("logseq.Editor.removeBlock", [block_uuid])
        logger.debug(f"remove_block result: {result!r}")
        self._check_void_result(result, "Failed to remove block")

    @staticmethod
    def _check_void_result(result: Any, message: str) -> None:
        if result is None:
            return
        if isinstance(result, dict) and "error" in result:
            raise LogseqOperationError(f"{message}: {result['error']}")

    # ====================================================================
    # QUERIES
    # ====================================================================

    async def datascript_query(self, query: str) -> Any:
        return await self.call_api("logseq.DB.datascriptQuery", [query])

    async def search(self, query: str) -> list[SearchResult]:
        """Substring search over block content via a Datascript query."""
        escaped = query.replace('"', '\\"')
        result = await self.datascript_query(SEARCH_QUERY_TEMPLATE.format(text=escaped))
        logger.debug(f"Search DataScript result: {result!r}")

        return [
            SearchResult(block=Block(uuid=uuid, content=content))
            for uuid, content in _string_rows(result, 2)
        ]

    async def find_incomplete_todos(self) -> list[TodoItem]:
        result = await self.datascript_query(INCOMPLETE_TODOS_QUERY)
        logger.debug(f"find_incomplete_todos DataScript result: {result!r}")

        return [
            TodoItem(uuid=uuid, content=content, marker=marker, page_name=page_name)
            for uuid, content, marker, page_name in _string_rows(result, 4)
        ]

    # ====================================================================
    # APP STATE
    # ====================================================================

    async def get_current_graph(self) -> Any:
        return await self.call_api("logseq.App.getCurrentGraph")

    async def get_state_from_store(self, key: str) -> Any:
        return await self.call_api("logseq.App.getStateFromStore", [key])

    async def get_user_configs(self) -> Any:
        return await self.call_api("logseq.App.getUserConfigs")
