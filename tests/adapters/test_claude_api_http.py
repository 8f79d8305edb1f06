import json
from urllib.error import URLError

import pytest

from arihante.adapters import claude_api_http
from arihante.adapters.claude_api_client import ClaudeApiCompletionClient, ClaudeApiCompletionClientError
from arihante.adapters.claude_api_http import (
    ClaudeApiHttpError,
    build_message_request,
    extract_text_blocks,
    parse_message_payload,
)


def test_build_request_carries_prompts_and_headers() -> None:
    req = build_message_request(
        api_key="k",
        model="m",
        system_prompt="sys",
        user_prompt="hello",
        max_tokens=100,
    )
    body = json.loads(req.data.decode("utf-8"))
    assert body["system"] == "sys"
    assert body["messages"] == [{"role": "user", "content": "hello"}]
    assert req.get_header("X-api-key") == "k"


def test_parse_payload_raises_on_api_error() -> None:
    raw = json.dumps({"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}})
    with pytest.raises(ClaudeApiHttpError, match="overloaded_error"):
        parse_message_payload(raw)


def test_parse_payload_rejects_non_json() -> None:
    with pytest.raises(ClaudeApiHttpError):
        parse_message_payload("<html>bad gateway</html>")


def test_extract_text_blocks_joins_text_items() -> None:
    payload = {
        "content": [
            {"type": "text", "text": " first "},
            {"type": "tool_use", "id": "x"},
            {"type": "text", "text": "second"},
        ]
    }
    assert extract_text_blocks(payload) == "first\nsecond"


def test_client_wraps_connection_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def _offline(req, timeout):
        raise URLError("network unreachable")

    monkeypatch.setattr(claude_api_http, "urlopen", _offline)
    client = ClaudeApiCompletionClient(api_key="k")

    with pytest.raises(ClaudeApiCompletionClientError, match="connection error"):
        client.complete("sys", "hello")
