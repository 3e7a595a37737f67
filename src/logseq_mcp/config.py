# ============================================================================
# LOGSEQ MCP - CONFIGURATION
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# Environment Variables (a .env file in the working directory is honoured):
#   LOGSEQ_API_URL    - Logseq HTTP API server (default http://localhost:12315)
#   LOGSEQ_API_TOKEN  - Logseq API token (required for STDIO mode)
#   LOGSEQ_TIMEOUT    - Request timeout in seconds (default 30)
#   TRANSPORT         - Transport: stdio (default) or http
#   HOST / PORT       - HTTP bind address (default 127.0.0.1:8000)
#   LOG_LEVEL         - Logging level (default INFO)
# ============================================================================

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

from .backend.logseq_client import DEFAULT_BASE_URL

__all__ = [
    "Settings",
    "load_settings",
    "setup_logging",
]

DEFAULT_TIMEOUT = 30.0
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_BASE_URL
    api_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    transport: str = "stdio"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @property
    def http_mode(self) -> bool:
        return self.transport == "http"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env

        transport = env.get("TRANSPORT", "stdio").strip().lower()
        if transport not in ("stdio", "http"):
            raise ValueError(f"Unsupported TRANSPORT '{transport}' (expected stdio or http)")

        raw_timeout = env.get("LOGSEQ_TIMEOUT", "")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ValueError(f"LOGSEQ_TIMEOUT must be a number, got '{raw_timeout}'") from None

        raw_port = env.get("PORT", "")
        try:
            port = int(raw_port) if raw_port else DEFAULT_PORT
        except ValueError:
            raise ValueError(f"PORT must be an integer, got '{raw_port}'") from None

        return cls(
            api_url=(env.get("LOGSEQ_API_URL") or DEFAULT_BASE_URL).rstrip("/"),
            api_token=env.get("LOGSEQ_API_TOKEN") or None,
            timeout=timeout,
            transport=transport,
            host=env.get("HOST") or DEFAULT_HOST,
            port=port,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


def load_settings() -> Settings:
    """Load .env (if present) into the process environment, then read settings."""
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)
    return Settings.from_env()


def setup_logging(level: str = "INFO") -> None:
    # stdout carries the STDIO transport, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
