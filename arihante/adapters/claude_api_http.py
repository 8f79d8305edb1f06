"""Minimal Claude Messages API HTTP helper (no external SDK dependency)."""

from __future__ import annotations

import json
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

MESSAGES_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"


class ClaudeApiHttpError(RuntimeError):
    """Raised when Claude API HTTP call fails."""


def build_message_request(
    *,
    api_key: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int,
) -> Request:
    body = {
        "model": model,
        "max_tokens": max_tokens,
        "system": system_prompt,
        "messages": [{"role": "user", "content": user_prompt}],
    }
    return Request(
        url=MESSAGES_URL,
        data=json.dumps(body, ensure_ascii=True).encode("utf-8"),
        method="POST",
        headers={
            "content-type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": API_VERSION,
        },
    )


def request_claude_message(
    *,
    api_key: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int,
    timeout_seconds: int,
) -> dict[str, Any]:
    req = build_message_request(
        api_key=api_key,
        model=model,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        max_tokens=max_tokens,
    )

    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as exc:
        detail = ""
        try:
            detail = exc.read().decode("utf-8", errors="replace").strip()
        except OSError:
            detail = ""
        if detail:
            raise ClaudeApiHttpError(f"claude API HTTP {exc.code}: {detail[:300]}") from exc
        raise ClaudeApiHttpError(f"claude API HTTP {exc.code}") from exc
    except URLError as exc:
        reason = exc.reason if getattr(exc, "reason", None) else str(exc)
        raise ClaudeApiHttpError(f"claude API connection error: {reason}") from exc
    except TimeoutError as exc:
        raise ClaudeApiHttpError(f"claude API timed out after {timeout_seconds}s") from exc

    return parse_message_payload(raw)


def parse_message_payload(raw: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ClaudeApiHttpError("claude API returned non-JSON response") from exc

    if not isinstance(payload, dict):
        raise ClaudeApiHttpError("claude API response must be an object")

    if isinstance(payload.get("error"), dict):
        err = payload["error"]
        message = str(err.get("message") or "unknown error")
        err_type = str(err.get("type") or "error")
        raise ClaudeApiHttpError(f"claude API error ({err_type}): {message}")

    return payload


def extract_text_blocks(payload: dict[str, Any]) -> str:
    content = payload.get("content")
    if not isinstance(content, list):
        return ""

    parts = [
        item["text"].strip()
        for item in content
        if isinstance(item, dict) and item.get("type") == "text" and isinstance(item.get("text"), str)
    ]
    return "\n".join(part for part in parts if part).strip()
