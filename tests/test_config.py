import pytest
from starlette.requests import Request

from logseq_mcp.config import DEFAULT_TIMEOUT, Settings, load_settings
from logseq_mcp.core.auth import extract_token_from_request, validate_api_token


# ============================================================================
# SETTINGS
# ============================================================================

def test_defaults():
    settings = Settings.from_env({})

    assert settings.api_url == "http://localhost:12315"
    assert settings.api_token is None
    assert settings.timeout == DEFAULT_TIMEOUT
    assert settings.transport == "stdio"
    assert settings.http_mode is False
    assert (settings.host, settings.port) == ("127.0.0.1", 8000)
    assert settings.log_level == "INFO"


def test_values_from_environment():
    settings = Settings.from_env({
        "LOGSEQ_API_URL": "http://127.0.0.1:9999/",
        "LOGSEQ_API_TOKEN": "secret",
        "LOGSEQ_TIMEOUT": "5",
        "TRANSPORT": "HTTP",
        "HOST": "0.0.0.0",
        "PORT": "9000",
        "LOG_LEVEL": "debug",
    })

    assert settings.api_url == "http://127.0.0.1:9999"
    assert settings.api_token == "secret"
    assert settings.timeout == 5.0
    assert settings.http_mode is True
    assert (settings.host, settings.port) == ("0.0.0.0", 9000)
    assert settings.log_level == "DEBUG"


def test_empty_token_counts_as_unset():
    assert Settings.from_env({"LOGSEQ_API_TOKEN": ""}).api_token is None


@pytest.mark.parametrize(
    "env, message",
    [
        ({"TRANSPORT": "sse"}, "Unsupported TRANSPORT"),
        ({"LOGSEQ_TIMEOUT": "soon"}, "LOGSEQ_TIMEOUT must be a number"),
        ({"PORT": "eighty"}, "PORT must be an integer"),
    ],
)
def test_invalid_values(env, message):
    with pytest.raises(ValueError, match=message):
        Settings.from_env(env)


def test_load_settings_reads_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("LOGSEQ_API_TOKEN=from-dotenv\n")
    monkeypatch.chdir(tmp_path)
    # setenv first so the value loaded from .env is removed again on teardown
    monkeypatch.setenv("LOGSEQ_API_TOKEN", "")
    monkeypatch.delenv("LOGSEQ_API_TOKEN")

    assert load_settings().api_token == "from-dotenv"


# ============================================================================
# BEARER TOKENS
# ============================================================================

def _request(headers):
    return Request({
        "type": "http",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    })


def test_validate_api_token():
    assert validate_api_token("abc") == (True, None)
    assert validate_api_token("")[0] is False
    assert validate_api_token(None)[0] is False
    assert validate_api_token("has space")[0] is False


def test_extract_bearer_token():
    assert extract_token_from_request(_request({"Authorization": "Bearer abc123"})) == "abc123"


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Basic abc"}, {"Authorization": "Bearer "}],
)
def test_extract_rejects_missing_or_foreign_schemes(headers):
    assert extract_token_from_request(_request(headers)) is None


# ============================================================================
# ENTRY POINT
# ============================================================================

def test_main_exits_without_token_in_stdio_mode(tmp_path, monkeypatch, capsys):
    from logseq_mcp import main

    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOGSEQ_API_TOKEN", raising=False)
    monkeypatch.setenv("TRANSPORT", "stdio")

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 1
    assert "LOGSEQ_API_TOKEN" in capsys.readouterr().err
