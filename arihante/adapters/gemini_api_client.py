"""Google Gemini completion client (google-genai SDK)."""

from __future__ import annotations

import importlib


class GeminiCompletionClientError(RuntimeError):
    """Gemini API completion error."""


class GeminiCompletionClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout_seconds: int = 60,
        max_output_tokens: int = 600,
    ) -> None:
        try:
            self._genai = importlib.import_module("google.genai")
            self._types = importlib.import_module("google.genai.types")
        except Exception as exc:
            raise GeminiCompletionClientError("google-genai package is required") from exc
        self._client = self._genai.Client(
            api_key=api_key,
            http_options=self._types.HttpOptions(timeout=timeout_seconds * 1000),
        )
        self._model = model
        self._max_output_tokens = max_output_tokens

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        config = self._types.GenerateContentConfig(
            system_instruction=system_prompt,
            max_output_tokens=self._max_output_tokens,
            response_mime_type="application/json",
        )
        try:
            resp = self._client.models.generate_content(
                model=self._model,
                contents=user_prompt,
                config=config,
            )
        except Exception as exc:
            raise GeminiCompletionClientError(f"failed to call Gemini API: {exc}") from exc

        text = (getattr(resp, "text", "") or "").strip()
        if not text:
            raise GeminiCompletionClientError("Gemini API returned empty response")
        return text
