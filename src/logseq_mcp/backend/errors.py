# ============================================================================
# LOGSEQ MCP - ERRORS
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# Failure taxonomy for calls against the Logseq HTTP API:
#   LogseqAPIError        - non-2xx HTTP status (remote failure)
#   LogseqDecodeError     - payload does not match the expected model
#   LogseqOperationError  - call "succeeded" but did not take effect
#
# Transport failures are raised by httpx as-is (httpx.HTTPError).
# ============================================================================

__all__ = [
    "LogseqError",
    "LogseqAPIError",
    "LogseqDecodeError",
    "LogseqOperationError",
]


class LogseqError(Exception):
    """Base class for all Logseq adapter failures."""


class LogseqAPIError(LogseqError):
    """The Logseq API answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API call failed: {status_code} - {body}")


class LogseqDecodeError(LogseqError):
    """A response could not be decoded into the operation's result type."""

    def __init__(self, method: str, detail: str) -> None:
        self.method = method
        super().__init__(f"Could not decode {method} response: {detail}")


class LogseqOperationError(LogseqError):
    pass
