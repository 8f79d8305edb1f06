"""Shared completion client interface for assistant answers."""

from __future__ import annotations

from typing import Protocol


class CompletionClient(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the raw model reply text for one prompt pair."""
