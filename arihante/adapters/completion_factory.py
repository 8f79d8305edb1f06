"""Factory for selecting the completion engine implementation."""

from __future__ import annotations

from typing import Optional

from arihante.adapters.claude_api_client import ClaudeApiCompletionClient
from arihante.adapters.codex_api_client import CodexCompletionClient, CodexCompletionClientError
from arihante.adapters.completion_client import CompletionClient
from arihante.adapters.gemini_api_client import GeminiCompletionClient, GeminiCompletionClientError
from arihante.config.settings import SettingsConfig


class CompletionFactoryError(RuntimeError):
    """Completion engine initialization error."""


def create_completion_client(
    settings: SettingsConfig,
    claude_api_key: Optional[str] = None,
    codex_api_key: Optional[str] = None,
    gemini_api_key: Optional[str] = None,
) -> CompletionClient:
    engine = settings.engine
    mode = engine.mode

    if mode == "claude_api":
        if not claude_api_key:
            raise CompletionFactoryError("claude_api mode requires claude_api_key in OS credential store")
        return ClaudeApiCompletionClient(
            api_key=claude_api_key,
            model=engine.claude_api_model,
            timeout_seconds=engine.timeout_seconds,
            max_output_tokens=engine.max_output_tokens,
        )

    if mode == "codex_api":
        if not codex_api_key:
            raise CompletionFactoryError("codex_api mode requires codex_api_key in OS credential store")
        try:
            return CodexCompletionClient(
                api_key=codex_api_key,
                model=engine.codex_api_model,
                timeout_seconds=engine.timeout_seconds,
                max_output_tokens=engine.max_output_tokens,
            )
        except CodexCompletionClientError as exc:
            raise CompletionFactoryError(str(exc)) from exc

    if mode == "gemini_api":
        if not gemini_api_key:
            raise CompletionFactoryError("gemini_api mode requires gemini_api_key in OS credential store")
        try:
            return GeminiCompletionClient(
                api_key=gemini_api_key,
                model=engine.gemini_api_model,
                timeout_seconds=engine.timeout_seconds,
                max_output_tokens=engine.max_output_tokens,
            )
        except GeminiCompletionClientError as exc:
            raise CompletionFactoryError(str(exc)) from exc

    raise CompletionFactoryError(f"unsupported engine mode: {mode}")
