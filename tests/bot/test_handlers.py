import asyncio
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest

from arihante.bot.handlers import TelegramHandlers
from arihante.bot.screens import ACTION_LABELS, REQUEST_FAILED_NOTICE
from arihante.core.controller import InteractionController
from arihante.models.interaction import ResultData, ViewState


class _Backend:
    def __init__(self) -> None:
        self.answers = ["Check the fridge seal.", "Use tape for now."]
        self.fail = False
        self.calls: list[tuple[str, Optional[str]]] = []

    async def generate(self, prompt: str, context: Optional[str] = None) -> ResultData:
        self.calls.append((prompt, context))
        if self.fail:
            raise RuntimeError("service down")
        return ResultData(answer=self.answers.pop(0))


class _Runtime:
    def __init__(self, voice: bool = False, voice_dir: Path = Path("unused")) -> None:
        self.backend = _Backend()
        self.controller = InteractionController(backend=self.backend, voice_capability=voice)
        self.voice_dir = voice_dir
        self.settings = SimpleNamespace(voice=SimpleNamespace(max_clip_seconds=60))

    def controller_for(self, chat_id: int) -> InteractionController:
        return self.controller

    def check_rate(self, chat_id: int, kind: str) -> None:
        return None

    def get_runtime_status(self) -> dict[str, str]:
        return {"instance_id": "default"}


class _Message:
    def __init__(self, text: str = "", voice: Any = None) -> None:
        self.text = text
        self.voice = voice
        self.message_id = 1
        self.replies: list[str] = []

    async def reply_text(self, text: str, **kwargs: Any) -> None:
        self.replies.append(text)


def _update(message: _Message) -> SimpleNamespace:
    return SimpleNamespace(effective_chat=SimpleNamespace(id=42), effective_message=message)


def _send(handlers: TelegramHandlers, text: str) -> _Message:
    message = _Message(text)
    asyncio.run(handlers.menu_text(_update(message), SimpleNamespace()))
    return message


def test_problem_flow_with_follow_up() -> None:
    runtime = _Runtime()
    handlers = TelegramHandlers(runtime)

    _send(handlers, ACTION_LABELS["problem"])
    assert runtime.controller.state.view == ViewState.INPUT_PROBLEM

    message = _send(handlers, "fridge is warm")
    assert message.replies[0] == "Thinking..."
    assert "Check the fridge seal." in message.replies[-1]

    _send(handlers, "no spare seal")
    assert runtime.backend.calls[-1] == ("no spare seal", "Check the fridge seal.")

    _send(handlers, ACTION_LABELS["done"])
    assert runtime.controller.state.view == ViewState.HOME


def test_failed_daily_request_lands_home_with_notice() -> None:
    runtime = _Runtime()
    runtime.backend.fail = True
    handlers = TelegramHandlers(runtime)

    message = _send(handlers, ACTION_LABELS["daily"])

    assert runtime.controller.state.view == ViewState.HOME
    assert REQUEST_FAILED_NOTICE in message.replies[-1]


def test_solve_with_empty_draft_does_not_call_service() -> None:
    runtime = _Runtime()
    handlers = TelegramHandlers(runtime)
    _send(handlers, ACTION_LABELS["problem"])

    message = _send(handlers, ACTION_LABELS["solve"])

    assert runtime.backend.calls == []
    assert runtime.controller.state.view == ViewState.INPUT_PROBLEM
    assert len(message.replies) == 1


def test_free_text_on_home_only_rerenders() -> None:
    runtime = _Runtime()
    handlers = TelegramHandlers(runtime)

    _send(handlers, "hello there")

    assert runtime.backend.calls == []
    assert runtime.controller.state.view == ViewState.HOME


def test_voice_note_without_capability_is_ignored() -> None:
    runtime = _Runtime()
    handlers = TelegramHandlers(runtime)
    _send(handlers, ACTION_LABELS["problem"])

    message = _Message(voice=SimpleNamespace())
    asyncio.run(handlers.voice_note(_update(message), SimpleNamespace()))

    assert runtime.controller.state.input_text == ""
    assert runtime.controller.state.listening is False
    assert len(message.replies) == 1


class _VoiceFile:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    async def download_to_drive(self, custom_path: Path) -> None:
        custom_path.write_bytes(b"OggS partial")
        if self.fail:
            raise OSError("connection reset")


class _Voice:
    def __init__(self, fail: bool = False) -> None:
        self.file = _VoiceFile(fail=fail)

    async def get_file(self) -> _VoiceFile:
        return self.file


class _ClipEngine:
    """Stands in for SpeechRecognitionEngine: converts the clip and hears "hello"."""

    created: list["_ClipEngine"] = []

    def __init__(self, audio_path: Path, max_clip_seconds: int = 60) -> None:
        self.audio_path = audio_path
        self.max_clip_seconds = max_clip_seconds
        self.lang = ""
        self.continuous = True
        self.on_result: Optional[Callable[[str], None]] = None
        self.on_error: Optional[Callable[[BaseException], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self.saw_download = False
        _ClipEngine.created.append(self)

    def start(self) -> None:
        self.saw_download = self.audio_path.exists()
        self.audio_path.with_suffix(".wav").write_bytes(b"RIFF")
        loop = asyncio.get_running_loop()
        loop.call_soon(self.on_result, "hello")
        loop.call_soon(self.on_end)


def test_voice_note_fills_problem_draft_and_cleans_up(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("arihante.bot.handlers.SpeechRecognitionEngine", _ClipEngine)
    _ClipEngine.created = []
    runtime = _Runtime(voice=True, voice_dir=tmp_path / "voice")
    handlers = TelegramHandlers(runtime)
    _send(handlers, ACTION_LABELS["problem"])
    runtime.controller.set_input("fix my")

    message = _Message(voice=_Voice())
    asyncio.run(handlers.voice_note(_update(message), SimpleNamespace()))

    state = runtime.controller.state
    assert state.view == ViewState.INPUT_PROBLEM
    assert state.input_text == "fix my hello"
    assert state.listening is False
    assert "Listening..." in message.replies[0]
    assert "fix my hello" in message.replies[-1]
    assert "Listening..." not in message.replies[-1]

    engine = _ClipEngine.created[0]
    assert engine.saw_download is True
    assert engine.max_clip_seconds == 60
    assert list((tmp_path / "voice").iterdir()) == []
    assert runtime.backend.calls == []


def test_failed_voice_download_leaves_no_partial_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("arihante.bot.handlers.SpeechRecognitionEngine", _ClipEngine)
    _ClipEngine.created = []
    runtime = _Runtime(voice=True, voice_dir=tmp_path / "voice")
    handlers = TelegramHandlers(runtime)
    _send(handlers, ACTION_LABELS["problem"])

    message = _Message(voice=_Voice(fail=True))
    with pytest.raises(OSError):
        asyncio.run(handlers.voice_note(_update(message), SimpleNamespace()))

    assert _ClipEngine.created == []
    assert list((tmp_path / "voice").iterdir()) == []
    assert runtime.controller.state.listening is False


def test_typed_text_extends_problem_draft() -> None:
    runtime = _Runtime()
    handlers = TelegramHandlers(runtime)
    _send(handlers, ACTION_LABELS["problem"])
    runtime.controller.set_input("fix my")

    _send(handlers, "fridge door")

    assert runtime.backend.calls == [("fix my fridge door", None)]
    assert runtime.controller.state.view == ViewState.RESULT


def test_typed_follow_up_replaces_draft() -> None:
    runtime = _Runtime()
    handlers = TelegramHandlers(runtime)
    _send(handlers, ACTION_LABELS["daily"])
    runtime.controller.set_input("old words")

    _send(handlers, "what about tape?")

    assert runtime.backend.calls[-1] == ("what about tape?", "Check the fridge seal.")
