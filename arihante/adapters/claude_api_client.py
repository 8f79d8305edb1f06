"""Claude API completion client."""

from __future__ import annotations

from arihante.adapters.claude_api_http import ClaudeApiHttpError, extract_text_blocks, request_claude_message


class ClaudeApiCompletionClientError(RuntimeError):
    """Claude API completion error."""


class ClaudeApiCompletionClient:
    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5",
        timeout_seconds: int = 60,
        max_output_tokens: int = 600,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._max_output_tokens = max_output_tokens

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            payload = request_claude_message(
                api_key=self._api_key,
                model=self._model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                max_tokens=self._max_output_tokens,
                timeout_seconds=self._timeout_seconds,
            )
        except ClaudeApiHttpError as exc:
            raise ClaudeApiCompletionClientError(str(exc)) from exc

        text = extract_text_blocks(payload)
        if not text:
            raise ClaudeApiCompletionClientError("Claude API returned empty response")
        return text
