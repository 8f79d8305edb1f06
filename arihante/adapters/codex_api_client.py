"""OpenAI Responses API completion client."""

from __future__ import annotations

import importlib


class CodexCompletionClientError(RuntimeError):
    """OpenAI API completion error."""


class CodexCompletionClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-5-mini",
        timeout_seconds: int = 60,
        max_output_tokens: int = 600,
    ) -> None:
        try:
            openai_mod = importlib.import_module("openai")
        except Exception as exc:
            raise CodexCompletionClientError("openai package is required") from exc
        self._client = openai_mod.OpenAI(api_key=api_key, timeout=timeout_seconds)
        self._model = model
        self._max_output_tokens = max_output_tokens

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            resp = self._client.responses.create(
                model=self._model,
                input=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_output_tokens=self._max_output_tokens,
            )
        except Exception as exc:
            raise CodexCompletionClientError(f"failed to call OpenAI API: {exc}") from exc

        text = (getattr(resp, "output_text", "") or "").strip()
        if not text:
            raise CodexCompletionClientError("OpenAI API returned empty response")
        return text
