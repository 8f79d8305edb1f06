"""Interaction controller: the single entry point for user actions."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from arihante.core.orchestrator import DEFAULT_DAILY_PROMPT, CompletionBackend, RequestOrchestrator
from arihante.core.state_machine import StateListener, ViewStateMachine
from arihante.core.voice import DEFAULT_LANGUAGE, EngineFactory, VoiceCaptureAdapter
from arihante.models.interaction import StateSnapshot, ViewState, is_blank

LOGGER = logging.getLogger(__name__)

_INPUT_VIEWS = {ViewState.INPUT_PROBLEM, ViewState.RESULT}


class InteractionController:
    """Guards every user action against the current view.

    Actions that do not apply to the current view are no-ops and return False,
    so a request can never start while another one is outstanding.
    """

    def __init__(
        self,
        backend: CompletionBackend,
        voice_capability: bool = False,
        daily_prompt: str = DEFAULT_DAILY_PROMPT,
        voice_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self._machine = ViewStateMachine(voice_capability=voice_capability)
        self._orchestrator = RequestOrchestrator(self._machine, backend, daily_prompt=daily_prompt)
        self._voice = VoiceCaptureAdapter(self._machine, language=voice_language)

    @property
    def state(self) -> StateSnapshot:
        return self._machine.snapshot()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._machine.subscribe(listener)

    def open_problem(self) -> bool:
        if not self._machine.can("open_problem"):
            return False
        self._machine.open_problem()
        return True

    def go_back(self) -> bool:
        if not self._machine.can("go_home"):
            return False
        self._machine.go_home()
        return True

    def set_input(self, text: str) -> bool:
        if self._machine.view not in _INPUT_VIEWS:
            return False
        self._machine.set_input(text)
        return True

    async def request_daily(self) -> bool:
        if self._machine.view != ViewState.HOME:
            return False
        await self._orchestrator.daily()
        return True

    async def submit(self, text: Optional[str] = None) -> bool:
        if self._machine.view not in _INPUT_VIEWS:
            return False
        prompt = text if text is not None else self._machine.input_text
        if is_blank(prompt):
            return False
        if text is not None:
            self._machine.set_input(text)

        context = None
        if self._machine.view == ViewState.RESULT and self._machine.result is not None:
            context = self._machine.result.answer
        await self._orchestrator.submit(prompt, context=context)
        return True

    def done(self) -> bool:
        if not self._machine.can("done"):
            return False
        self._machine.done()
        return True

    async def start_listening(self, engine_factory: EngineFactory) -> bool:
        if self._machine.view not in _INPUT_VIEWS:
            return False
        outcome = await self._voice.activate(engine_factory)
        return outcome is not None
