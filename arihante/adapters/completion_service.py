"""Async completion service used by the request orchestrator."""

from __future__ import annotations

import asyncio
import json
import re
from typing import Optional

from pydantic import ValidationError

from arihante.adapters.completion_client import CompletionClient
from arihante.adapters.prompts import SYSTEM_PROMPT, build_user_prompt
from arihante.models.interaction import CompletionPayload, ResultData

# Telegram single-message practical upper bound.
MAX_ANSWER_CHARS = 3500

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class CompletionError(RuntimeError):
    """Completion reply could not be turned into an answer."""


def parse_completion_reply(raw: str) -> ResultData:
    text = (raw or "").strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CompletionError("completion reply is not valid JSON") from exc
    if not isinstance(data, dict):
        raise CompletionError("completion reply must be a JSON object")

    try:
        payload = CompletionPayload.model_validate(data)
        return ResultData(answer=payload.answer.strip()[:MAX_ANSWER_CHARS])
    except ValidationError as exc:
        raise CompletionError(f"completion reply has no usable answer: {exc.errors()[0]['msg']}") from exc


class CompletionService:
    def __init__(self, client: CompletionClient, system_prompt: str = SYSTEM_PROMPT) -> None:
        self._client = client
        self._system_prompt = system_prompt

    async def generate(self, prompt: str, context: Optional[str] = None) -> ResultData:
        user_prompt = build_user_prompt(prompt, context)
        raw = await asyncio.to_thread(self._client.complete, self._system_prompt, user_prompt)
        return parse_completion_reply(raw)
