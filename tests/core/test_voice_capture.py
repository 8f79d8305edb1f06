import asyncio
from typing import Callable, Optional

from arihante.core.controller import InteractionController
from arihante.core.voice import CaptureKind, VoiceCaptureAdapter, detect_voice_capability
from arihante.core.state_machine import ViewStateMachine
from arihante.models.interaction import ResultData, ViewState


class _Backend:
    async def generate(self, prompt: str, context: Optional[str] = None) -> ResultData:
        return ResultData(answer="previous answer")


class _ScriptedEngine:
    """Replays callbacks on the loop after start(), like a browser engine would."""

    def __init__(self, *steps: tuple) -> None:
        self.steps = steps
        self.lang = ""
        self.continuous = True
        self.on_result: Optional[Callable[[str], None]] = None
        self.on_error: Optional[Callable[[BaseException], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self.started = 0

    def start(self) -> None:
        self.started += 1
        loop = asyncio.get_running_loop()
        for step in self.steps:
            if step[0] == "result":
                loop.call_soon(self.on_result, step[1])
            elif step[0] == "error":
                loop.call_soon(self.on_error, step[1])
            else:
                loop.call_soon(self.on_end)


class _ManualEngine(_ScriptedEngine):
    def start(self) -> None:
        self.started += 1


def _problem_controller(text: str = "") -> InteractionController:
    controller = InteractionController(backend=_Backend(), voice_capability=True)
    controller.open_problem()
    if text:
        controller.set_input(text)
    return controller


def test_transcript_appends_to_problem_draft() -> None:
    controller = _problem_controller("fix my")
    engine = _ScriptedEngine(("result", "hello"), ("end",))

    assert asyncio.run(controller.start_listening(lambda: engine)) is True

    assert controller.state.input_text == "fix my hello"
    assert controller.state.listening is False
    assert engine.lang == "en-US"
    assert engine.continuous is False


def test_transcript_fills_empty_problem_draft() -> None:
    controller = _problem_controller()
    asyncio.run(controller.start_listening(lambda: _ScriptedEngine(("result", "hello"))))
    assert controller.state.input_text == "hello"


def test_transcript_replaces_follow_up_draft() -> None:
    controller = InteractionController(backend=_Backend(), voice_capability=True)
    asyncio.run(controller.request_daily())
    controller.set_input("something typed")

    asyncio.run(controller.start_listening(lambda: _ScriptedEngine(("result", "hello"))))

    assert controller.state.view == ViewState.RESULT
    assert controller.state.input_text == "hello"


def test_engine_error_leaves_buffer_untouched() -> None:
    controller = _problem_controller("fix my")
    engine = _ScriptedEngine(("error", RuntimeError("no-speech")), ("end",))

    asyncio.run(controller.start_listening(lambda: engine))

    assert controller.state.input_text == "fix my"
    assert controller.state.listening is False


def test_end_without_result_resets_flag() -> None:
    controller = _problem_controller("fix my")
    asyncio.run(controller.start_listening(lambda: _ScriptedEngine(("end",))))
    assert controller.state.input_text == "fix my"
    assert controller.state.listening is False


def test_engine_start_failure_counts_as_error() -> None:
    controller = _problem_controller()

    def _broken_factory() -> _ScriptedEngine:
        raise RuntimeError("microphone unavailable")

    asyncio.run(controller.start_listening(_broken_factory))
    assert controller.state.listening is False
    assert controller.state.input_text == ""


def test_callbacks_after_first_are_discarded() -> None:
    machine = ViewStateMachine(voice_capability=True)
    machine.open_problem()
    adapter = VoiceCaptureAdapter(machine)
    engine = _ScriptedEngine(("end",), ("result", "late words"))

    outcome = asyncio.run(adapter.activate(lambda: engine))

    assert outcome is not None
    assert outcome.kind == CaptureKind.END
    assert machine.input_text == ""


def test_no_capability_means_no_activation() -> None:
    controller = InteractionController(backend=_Backend(), voice_capability=False)
    controller.open_problem()
    engine = _ScriptedEngine(("result", "hello"))

    assert asyncio.run(controller.start_listening(lambda: engine)) is False
    assert engine.started == 0
    assert controller.state.input_text == ""


def test_voice_not_offered_on_home() -> None:
    controller = InteractionController(backend=_Backend(), voice_capability=True)
    engine = _ScriptedEngine(("result", "hello"))
    assert asyncio.run(controller.start_listening(lambda: engine)) is False
    assert engine.started == 0


def test_overlapping_activation_is_rejected() -> None:
    async def scenario() -> tuple[bool, int, str]:
        controller = _problem_controller()
        first_engine = _ManualEngine()
        second_engine = _ManualEngine()
        first = asyncio.create_task(controller.start_listening(lambda: first_engine))
        await asyncio.sleep(0)
        assert controller.state.listening is True

        second = await controller.start_listening(lambda: second_engine)
        assert first_engine.on_result is not None
        first_engine.on_result("hello")
        await first
        return second, second_engine.started, controller.state.input_text

    second, second_started, text = asyncio.run(scenario())
    assert second is False
    assert second_started == 0
    assert text == "hello"


def test_detect_voice_capability_respects_disabled_flag() -> None:
    assert detect_voice_capability(False) is False


def test_detect_voice_capability_requires_packages(monkeypatch) -> None:
    monkeypatch.setattr("arihante.core.voice.importlib.util.find_spec", lambda name: None)
    assert detect_voice_capability(True) is False


def test_transcript_arriving_after_leaving_input_view_is_dropped() -> None:
    async def scenario() -> tuple[bool, InteractionController]:
        controller = _problem_controller("fix my")
        engine = _ManualEngine()
        pending = asyncio.create_task(controller.start_listening(lambda: engine))
        await asyncio.sleep(0)
        assert controller.state.listening is True

        controller.go_back()
        assert engine.on_result is not None
        engine.on_result("hello")
        return await pending, controller

    started, controller = asyncio.run(scenario())
    state = controller.state
    assert started is True
    assert state.view == ViewState.HOME
    assert state.input_text == "fix my"
    assert state.listening is False
