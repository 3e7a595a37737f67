# ============================================================================
# LOGSEQ MCP - AUTHENTICATION UTILITIES
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# The server does not authenticate callers itself. It forwards a Logseq API
# token as an OAuth2 Bearer Token (RFC 6750) to the Logseq HTTP API server:
#   STDIO mode: token from LOGSEQ_API_TOKEN
#   HTTP mode:  token from the caller's Authorization header, if present
# ============================================================================

from starlette.requests import Request

__all__ = [
    "validate_api_token",
    "extract_token_from_request",
]

BEARER_PREFIX = "Bearer "


def validate_api_token(token: str | None) -> tuple[bool, str | None]:
    """Validate token shape.
    Returns: (is_valid, error_message).
    """
    if not token:
        return False, "LOGSEQ_API_TOKEN is required"

    if not isinstance(token, str):
        return False, "API token must be a string"

    if token != token.strip() or any(c.isspace() for c in token):
        return False, "API token must not contain whitespace"

    return True, None


def extract_token_from_request(request: Request) -> str | None:
    """Extract a bearer token from the HTTP Authorization header.
    Expected format: Authorization: Bearer <logseq token>
    """
    if request is None:
        return None

    auth_header = request.headers.get("authorization", "")

    if not auth_header.startswith(BEARER_PREFIX):
        return None

    token = auth_header[len(BEARER_PREFIX):].strip()

    is_valid, _ = validate_api_token(token)
    if not is_valid:
        return None

    return token
