"""Prompt construction for the shop assistant."""

from __future__ import annotations

from typing import Optional

SYSTEM_PROMPT = (
    "You are Arihante, a calm assistant for a small shop owner. "
    "Give one practical, concrete answer the owner can act on today. "
    "Use short sentences and plain everyday language. "
    "No lists longer than three items, no preamble, no disclaimers. "
    'Reply with JSON only, exactly in this shape: {"answer": "<your answer>"}'
)


def build_user_prompt(prompt: str, context: Optional[str] = None) -> str:
    request = (prompt or "").strip()
    previous = (context or "").strip()
    if not previous:
        return request
    return (
        "Your previous answer was:\n"
        + previous
        + "\n\nThe owner now asks a follow-up:\n"
        + request
        + "\n\nAnswer the follow-up in the light of your previous answer."
    )
