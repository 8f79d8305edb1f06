"""Voice capture: one speech-to-text activation into the shared input buffer."""

from __future__ import annotations

import asyncio
import importlib
import importlib.util
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from arihante.core.state_machine import ViewStateMachine
from arihante.models.interaction import ViewState

LOGGER = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en-US"

_INPUT_VIEWS = {ViewState.INPUT_PROBLEM, ViewState.RESULT}


class VoiceEngineError(RuntimeError):
    """Speech engine could not be created or failed to recognize audio."""


class SpeechEngine(Protocol):
    lang: str
    continuous: bool
    on_result: Optional[Callable[[str], None]]
    on_error: Optional[Callable[[BaseException], None]]
    on_end: Optional[Callable[[], None]]

    def start(self) -> None:
        """Begin one recognition cycle; outcome arrives through the callbacks."""


EngineFactory = Callable[[], SpeechEngine]


class CaptureKind(str, Enum):
    TRANSCRIPT = "TRANSCRIPT"
    ERROR = "ERROR"
    END = "END"


@dataclass(frozen=True)
class CaptureOutcome:
    kind: CaptureKind
    transcript: str = ""
    error: Optional[BaseException] = None


def detect_voice_capability(enabled: bool = True) -> bool:
    if not enabled:
        return False
    for module_name in ("speech_recognition", "pydub"):
        if importlib.util.find_spec(module_name) is None:
            LOGGER.info("voice capture disabled: %s is not installed", module_name)
            return False
    return True


class VoiceCaptureAdapter:
    def __init__(self, machine: ViewStateMachine, language: str = DEFAULT_LANGUAGE) -> None:
        self._machine = machine
        self._language = language

    async def activate(self, engine_factory: EngineFactory) -> Optional[CaptureOutcome]:
        """Run one capture cycle and apply its transcript to the input buffer.

        Returns None when no activation was started (no capability, or one is
        already outstanding). Only the first engine callback counts.
        """
        if not self._machine.voice_capability:
            return None
        if self._machine.listening:
            LOGGER.info("voice activation rejected: capture already in progress")
            return None

        loop = asyncio.get_running_loop()
        settled: asyncio.Future[CaptureOutcome] = loop.create_future()

        def _settle(outcome: CaptureOutcome) -> None:
            if not settled.done():
                settled.set_result(outcome)

        self._machine.set_listening(True)
        try:
            engine = engine_factory()
            engine.lang = self._language
            engine.continuous = False
            engine.on_result = lambda text: _settle(CaptureOutcome(kind=CaptureKind.TRANSCRIPT, transcript=text))
            engine.on_error = lambda exc: _settle(CaptureOutcome(kind=CaptureKind.ERROR, error=exc))
            engine.on_end = lambda: _settle(CaptureOutcome(kind=CaptureKind.END))
            engine.start()
        except Exception as exc:
            _settle(CaptureOutcome(kind=CaptureKind.ERROR, error=exc))

        outcome = await settled
        accepts_input = self._machine.view in _INPUT_VIEWS
        if outcome.kind == CaptureKind.TRANSCRIPT and outcome.transcript.strip() and accepts_input:
            self._machine.apply_transcript(outcome.transcript.strip())
            LOGGER.info("voice transcript applied chars=%s view=%s", len(outcome.transcript), self._machine.view.value)
            return outcome

        if outcome.kind == CaptureKind.ERROR:
            LOGGER.info("voice capture failed: %s", outcome.error)
        elif outcome.kind == CaptureKind.TRANSCRIPT and outcome.transcript.strip():
            LOGGER.info("voice transcript dropped: view=%s", self._machine.view.value)
        else:
            LOGGER.debug("voice capture ended without transcript")
        self._machine.set_listening(False)
        if outcome.kind == CaptureKind.TRANSCRIPT:
            return CaptureOutcome(kind=CaptureKind.END)
        return outcome


class SpeechRecognitionEngine:
    """Speech engine backed by the SpeechRecognition package.

    One instance recognizes one recorded clip (for example a Telegram voice
    note). Recognition runs on a worker thread; callbacks are delivered on the
    event loop that created the engine.
    """

    def __init__(
        self,
        audio_path: Path,
        max_clip_seconds: int = 60,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        try:
            self._sr = importlib.import_module("speech_recognition")
            self._pydub = importlib.import_module("pydub")
        except Exception as exc:
            raise VoiceEngineError("SpeechRecognition and pydub packages are required for voice input") from exc
        self.lang = DEFAULT_LANGUAGE
        self.continuous = False
        self.on_result: Optional[Callable[[str], None]] = None
        self.on_error: Optional[Callable[[BaseException], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self._audio_path = Path(audio_path)
        self._max_clip_ms = max(1, int(max_clip_seconds)) * 1000
        self._loop = loop or asyncio.get_running_loop()
        self._started = False

    def start(self) -> None:
        if self._started:
            raise VoiceEngineError("recognition cycle already started")
        self._started = True
        self._loop.run_in_executor(None, self._recognize)

    def _to_wav(self) -> Path:
        if self._audio_path.suffix.lower() == ".wav":
            return self._audio_path
        segment = self._pydub.AudioSegment.from_file(str(self._audio_path))
        wav_path = self._audio_path.with_suffix(".wav")
        segment[: self._max_clip_ms].export(str(wav_path), format="wav")
        return wav_path

    def _recognize(self) -> None:
        sr = self._sr
        try:
            wav_path = self._to_wav()
            recognizer = sr.Recognizer()
            with sr.AudioFile(str(wav_path)) as source:
                audio = recognizer.record(source)
            text = recognizer.recognize_google(audio, language=self.lang)
        except sr.UnknownValueError:
            self._dispatch(self.on_end)
            return
        except Exception as exc:
            self._dispatch(self.on_error, VoiceEngineError(f"speech recognition failed: {exc}"))
            return

        self._dispatch(self.on_result, str(text or ""))
        self._dispatch(self.on_end)

    def _dispatch(self, callback: Optional[Callable[..., None]], *args: Any) -> None:
        if callback is None:
            return
        self._loop.call_soon_threadsafe(callback, *args)
