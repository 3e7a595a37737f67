import json

import httpx
import pytest

from logseq_mcp.backend.logseq_client import LogseqClient


class FakeLogseq:
    """Stands in for the Logseq HTTP API server.

    `responses` maps a remote method name to a JSON payload, an httpx.Response,
    a callable taking the decoded request body, or a Queued list of those consumed
    in order.
    """

    def __init__(self):
        self.calls = []
        self.requests = []
        self.responses = {}

    def methods(self):
        return [c["method"] for c in self.calls]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(request)
        self.calls.append(body)

        reply = self.responses[body["method"]]
        if isinstance(reply, Queued):
            reply = reply.pop(0)
        if callable(reply):
            reply = reply(body)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(
            200,
            content=json.dumps(reply).encode(),
            headers={"content-type": "application/json"},
        )


class Queued(list):
    """Marks a list of replies to be returned one per call."""


@pytest.fixture
def fake_logseq():
    return FakeLogseq()


@pytest.fixture
def client(fake_logseq):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_logseq.handler))
    return LogseqClient(
        base_url="http://logseq.test:12315",
        token="test-token",
        http_client=http_client,
    )


def block_payload(uuid="b-1", content="hello", **extra):
    return {"uuid": uuid, "content": content, **extra}
