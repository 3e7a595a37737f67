import httpx
import pytest
from starlette.testclient import TestClient

from logseq_mcp.backend.logseq_client import LogseqClient
from logseq_mcp.backend.tools import LOGSEQ_TOOLS, LogseqMCPServer
from logseq_mcp.core.transport import SERVER_CARD_PATH, create_http_app

MCP_HEADERS = {
    "Accept": "application/json, text/event-stream",
    "Content-Type": "application/json",
}


def rpc(method, params, request_id):
    return {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}


def initialize(http, headers):
    resp = http.post("/mcp/", headers=headers, json=rpc("initialize", {
        "protocolVersion": "2025-06-18",
        "capabilities": {},
        "clientInfo": {"name": "pytest", "version": "0"},
    }, 1))
    assert resp.status_code == 200
    return resp.json()["result"]


@pytest.fixture
def http_server(client):
    return LogseqMCPServer(api_token="env-token", http_mode=True, client=client)


# ============================================================================
# ROUTES
# ============================================================================

def test_health(http_server):
    with TestClient(http_server.http_app()) as http:
        resp = http.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": http_server.version}


def test_server_card_lists_registered_tools_and_resources(http_server):
    with TestClient(http_server.http_app()) as http:
        card = http.get(SERVER_CARD_PATH).json()

    assert card["name"] == "logseq-mcp-server"
    assert card["tools"] == [t["name"] for t in LOGSEQ_TOOLS]
    assert card["resources"] == ["logseq://docs/getting-started"]
    assert card["capabilities"] == {"tools": True, "resources": True, "prompts": False}
    assert card["authentication"]["required"] is False


def test_server_card_requires_token_when_none_configured(client):
    server = LogseqMCPServer(http_mode=True, client=client)

    assert server.build_server_card()["authentication"]["required"] is True


# ============================================================================
# TOKEN FORWARDING
# ============================================================================

def test_request_bearer_token_wins_over_configured_token(http_server, fake_logseq):
    fake_logseq.responses["logseq.Editor.getAllPages"] = [
        {"name": "inbox", "uuid": "p-1"},
    ]
    headers = {**MCP_HEADERS, "Authorization": "Bearer caller-tok"}

    app = create_http_app(
        http_server.server, http_server.build_server_card(), on_shutdown=http_server.close,
    )
    with TestClient(app) as http:
        assert http.get("/health").status_code == 200
        info = initialize(http, headers)
        resp = http.post("/mcp/", headers=headers, json=rpc(
            "tools/call", {"name": "list_pages", "arguments": {}}, 2,
        ))

    assert info["serverInfo"]["name"] == "logseq-mcp-server"
    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["isError"] is False
    assert result["content"][0]["text"] == "- inbox"
    assert [r.headers["authorization"] for r in fake_logseq.requests] == ["Bearer caller-tok"]


def test_request_without_bearer_uses_configured_token(http_server, fake_logseq):
    fake_logseq.responses["logseq.Editor.getAllPages"] = []

    with TestClient(http_server.http_app()) as http:
        resp = http.post("/mcp/", headers=MCP_HEADERS, json=rpc(
            "tools/call", {"name": "list_pages", "arguments": {}}, 1,
        ))

    assert resp.json()["result"]["isError"] is False
    assert fake_logseq.requests[-1].headers["authorization"] == "Bearer env-token"


def test_missing_argument_is_reported_as_tool_error(http_server, fake_logseq):
    with TestClient(http_server.http_app()) as http:
        resp = http.post("/mcp/", headers=MCP_HEADERS, json=rpc(
            "tools/call", {"name": "get_page_content", "arguments": {}}, 1,
        ))

    assert resp.json()["result"]["isError"] is True
    assert fake_logseq.calls == []


# ============================================================================
# SHUTDOWN
# ============================================================================

def test_app_shutdown_closes_server(http_server, monkeypatch):
    closed = []

    async def close():
        closed.append(True)

    monkeypatch.setattr(http_server, "close", close)
    with TestClient(http_server.http_app()) as http:
        http.get("/health")
        assert closed == []

    assert closed == [True]


async def test_close_releases_owned_connection_pool():
    server = LogseqMCPServer(api_token="test-token")
    pool = await server._client._get_client()

    await server.close()

    assert pool.is_closed


async def test_close_leaves_injected_client_open(fake_logseq):
    pool = httpx.AsyncClient(transport=httpx.MockTransport(fake_logseq.handler))
    server = LogseqMCPServer(
        api_token="test-token",
        client=LogseqClient(token="test-token", http_client=pool),
    )

    await server.close()

    assert not pool.is_closed
    await pool.aclose()
