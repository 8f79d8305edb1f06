"""Screen state machine for one assistant conversation."""

from __future__ import annotations

import logging
from typing import Callable

from arihante.models.interaction import InteractionState, ResultData, StateSnapshot, ViewState

LOGGER = logging.getLogger(__name__)

StateListener = Callable[[StateSnapshot], None]

_ALLOWED = {
    "open_problem": {ViewState.HOME},
    "go_home": {ViewState.INPUT_PROBLEM},
    "begin_loading": {ViewState.HOME, ViewState.INPUT_PROBLEM, ViewState.RESULT},
    "succeed": {ViewState.LOADING},
    "fail": {ViewState.LOADING},
    "done": {ViewState.RESULT},
}


class TransitionError(RuntimeError):
    """Raised when a transition is not allowed from the current view."""


class ViewStateMachine:
    """Owns the interaction state and the only code paths that mutate it.

    Every public mutator notifies subscribers with a fresh snapshot and checks
    that a result is held exactly while the RESULT screen is shown.
    """

    def __init__(self, voice_capability: bool = False) -> None:
        self._state = InteractionState()
        self._voice_capability = bool(voice_capability)
        self._listeners: list[StateListener] = []

    @property
    def view(self) -> ViewState:
        return self._state.view

    @property
    def result(self) -> ResultData | None:
        return self._state.result

    @property
    def input_text(self) -> str:
        return self._state.input_text

    @property
    def listening(self) -> bool:
        return self._state.listening

    @property
    def voice_capability(self) -> bool:
        return self._voice_capability

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            view=self._state.view,
            result=self._state.result,
            input_text=self._state.input_text,
            listening=self._state.listening,
            voice_capability=self._voice_capability,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def can(self, transition: str) -> bool:
        return self._state.view in _ALLOWED[transition]

    def open_problem(self) -> None:
        self._move("open_problem", ViewState.INPUT_PROBLEM)

    def go_home(self) -> None:
        self._move("go_home", ViewState.HOME)

    def begin_loading(self) -> None:
        self._move("begin_loading", ViewState.LOADING)

    def succeed(self, result: ResultData) -> None:
        self._require("succeed")
        self._state.result = result
        self._state.input_text = ""
        self._move("succeed", ViewState.RESULT)

    def fail(self) -> None:
        # Input is kept so the user can retry from the home screen.
        self._require("fail")
        self._state.result = None
        self._move("fail", ViewState.HOME)

    def done(self) -> None:
        self._require("done")
        self._state.result = None
        self._state.input_text = ""
        self._move("done", ViewState.HOME)

    def set_input(self, text: str) -> None:
        self._state.input_text = text or ""
        self._notify()

    def apply_transcript(self, transcript: str) -> None:
        current = self._state.input_text
        if current and self._state.view == ViewState.INPUT_PROBLEM:
            self._state.input_text = f"{current} {transcript}"
        else:
            self._state.input_text = transcript
        self._state.listening = False
        self._notify()

    def set_listening(self, flag: bool) -> None:
        if self._state.listening == bool(flag):
            return
        self._state.listening = bool(flag)
        self._notify()

    def _require(self, transition: str) -> None:
        if not self.can(transition):
            raise TransitionError(f"{transition} not allowed from {self._state.view.value}")

    def _move(self, transition: str, target: ViewState) -> None:
        self._require(transition)
        previous = self._state.view
        self._state.view = target
        if target != ViewState.RESULT:
            self._state.result = None
        self._check_invariant()
        LOGGER.debug("view %s -> %s (%s)", previous.value, target.value, transition)
        self._notify()

    def _check_invariant(self) -> None:
        has_result = self._state.result is not None
        if has_result != (self._state.view == ViewState.RESULT):
            raise TransitionError(
                f"result must be set exactly on RESULT view (view={self._state.view.value}, has_result={has_result})"
            )

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)
