"""Request orchestration between the screens and the completion service."""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

from arihante.core.state_machine import ViewStateMachine
from arihante.models.interaction import ResultData

LOGGER = logging.getLogger(__name__)

DEFAULT_DAILY_PROMPT = "Give me one meaningful task for my shop today."


class CompletionBackend(Protocol):
    async def generate(self, prompt: str, context: Optional[str] = None) -> ResultData:
        """Return the answer for prompt, optionally continuing from a previous answer."""


class RequestOrchestrator:
    def __init__(
        self,
        machine: ViewStateMachine,
        backend: CompletionBackend,
        daily_prompt: str = DEFAULT_DAILY_PROMPT,
    ) -> None:
        self._machine = machine
        self._backend = backend
        self._daily_prompt = daily_prompt

    async def daily(self) -> Optional[ResultData]:
        return await self.submit(self._daily_prompt)

    async def submit(self, text: str, context: Optional[str] = None) -> Optional[ResultData]:
        """Run one request; the view is LOADING until the call settles.

        Returns the new result, or None when the call failed and the view fell
        back to HOME. Callers are expected to have rejected blank text already.
        """
        self._machine.begin_loading()
        started_at = time.perf_counter()
        try:
            result = await self._backend.generate(text, context)
        except Exception as exc:
            elapsed_ms = int((time.perf_counter() - started_at) * 1000)
            LOGGER.warning(
                "request failed text_len=%s has_context=%s elapsed_ms=%s error=%s: %s",
                len(text),
                context is not None,
                elapsed_ms,
                type(exc).__name__,
                exc,
            )
            self._machine.fail()
            return None

        elapsed_ms = int((time.perf_counter() - started_at) * 1000)
        LOGGER.info(
            "request answered text_len=%s has_context=%s elapsed_ms=%s",
            len(text),
            context is not None,
            elapsed_ms,
        )
        self._machine.succeed(result)
        return result
