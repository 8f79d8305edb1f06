"""Telegram handlers: translate bot updates into controller actions and re-render."""

from __future__ import annotations

import asyncio
import html
import logging
import re
from typing import Awaitable, Callable, Optional

from telegram import Update
from telegram.constants import ParseMode
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from arihante.bot.screens import REQUEST_FAILED_NOTICE, Screen, action_from_text, render
from arihante.core.controller import InteractionController
from arihante.core.runtime import AppRuntime
from arihante.core.voice import SpeechRecognitionEngine
from arihante.models.interaction import StateSnapshot, ViewState, is_blank
from arihante.security.rate_limit import RateLimitExceeded

LOGGER = logging.getLogger(__name__)


def _chat_id(update: Update) -> int:
    assert update.effective_chat is not None
    return int(update.effective_chat.id)


def _render_telegram_html(text: str) -> str:
    # Escape user/model text first, then allow a minimal Markdown-style bold: **text**.
    escaped = html.escape(text or "")

    def _bold_sub(match: re.Match[str]) -> str:
        inner = match.group(1)
        if not inner.strip():
            return match.group(0)
        return f"<b>{inner}</b>"

    return re.sub(r"\*\*(.+?)\*\*", _bold_sub, escaped)


class TelegramHandlers:
    def __init__(self, runtime: AppRuntime) -> None:
        self.runtime = runtime

    def _controller(self, update: Update) -> InteractionController:
        return self.runtime.controller_for(_chat_id(update))

    async def _show(self, update: Update, screen: Screen) -> None:
        message = update.effective_message
        if message is None:
            return
        try:
            await message.reply_text(
                _render_telegram_html(screen.text),
                parse_mode=ParseMode.HTML,
                disable_web_page_preview=True,
                reply_markup=screen.markup,
            )
        except BadRequest:
            await message.reply_text(screen.text.replace("**", ""), reply_markup=screen.markup)

    async def _show_state(self, update: Update, notice: Optional[str] = None) -> None:
        await self._show(update, render(self._controller(update).state, notice=notice))

    async def _observe(
        self,
        update: Update,
        action: Callable[[], Awaitable[bool]],
        show_when: Callable[[StateSnapshot], bool],
    ) -> bool:
        """Run action, rendering the first in-progress snapshot it produces."""
        controller = self._controller(update)
        pending: list[asyncio.Task[None]] = []

        def _on_change(snap: StateSnapshot) -> None:
            if show_when(snap) and not pending:
                pending.append(asyncio.ensure_future(self._show(update, render(snap))))

        unsubscribe = controller.subscribe(_on_change)
        try:
            started = await action()
        finally:
            unsubscribe()
        if pending:
            await pending[0]
        return started

    async def _run_request(self, update: Update, action: Callable[[], Awaitable[bool]]) -> None:
        controller = self._controller(update)
        started = await self._observe(update, action, lambda snap: snap.view == ViewState.LOADING)
        if not started:
            await self._show_state(update)
            return
        notice = REQUEST_FAILED_NOTICE if controller.state.view == ViewState.HOME else None
        await self._show_state(update, notice=notice)

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._show_state(update)

    async def home(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        controller = self._controller(update)
        view = controller.state.view
        if view == ViewState.INPUT_PROBLEM:
            controller.go_back()
        elif view == ViewState.RESULT:
            controller.done()
        await self._show_state(update)

    async def status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        info = self.runtime.get_runtime_status()
        lines = ["Runtime status"] + [f"- {key}: {value}" for key, value in info.items()]
        lines.append(f"- screen: {self._controller(update).state.view.value}")
        message = update.effective_message
        if message is not None:
            await message.reply_text("\n".join(lines))

    async def menu_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None:
            return
        text = (message.text or "").strip()
        if not text:
            return

        controller = self._controller(update)
        action = action_from_text(text)
        view = controller.state.view

        if view == ViewState.HOME:
            if action == "daily":
                await self._run_request(update, controller.request_daily)
                return
            if action == "problem":
                controller.open_problem()
            await self._show_state(update)
            return

        if view == ViewState.INPUT_PROBLEM and action == "back":
            controller.go_back()
            await self._show_state(update)
            return

        if view == ViewState.RESULT and action == "done":
            controller.done()
            await self._show_state(update)
            return

        if view in {ViewState.INPUT_PROBLEM, ViewState.RESULT}:
            if action == "solve":
                await self._run_request(update, controller.submit)
            elif action is None:
                prompt = text
                draft = controller.state.input_text
                if view == ViewState.INPUT_PROBLEM and not is_blank(draft):
                    # Typed text extends a voice or earlier draft on the problem screen.
                    prompt = f"{draft.strip()} {text}"
                await self._run_request(update, lambda: controller.submit(prompt))
            else:
                await self._show_state(update)
            return

        LOGGER.info("input ignored chat_id=%s view=%s", _chat_id(update), view.value)

    async def voice_note(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or message.voice is None:
            return

        controller = self._controller(update)
        snap = controller.state
        if not snap.voice_capability or snap.listening or snap.view not in {ViewState.INPUT_PROBLEM, ViewState.RESULT}:
            await self._show_state(update)
            return

        chat_id = _chat_id(update)
        try:
            self.runtime.check_rate(chat_id, "voice")
        except RateLimitExceeded as exc:
            LOGGER.info("voice note skipped: %s", exc)
            await self._show_state(update)
            return

        self.runtime.voice_dir.mkdir(parents=True, exist_ok=True)
        audio_path = self.runtime.voice_dir / f"{chat_id}_{message.message_id}.oga"
        max_clip_seconds = self.runtime.settings.voice.max_clip_seconds
        try:
            voice_file = await message.voice.get_file()
            await voice_file.download_to_drive(custom_path=audio_path)
            await self._observe(
                update,
                lambda: controller.start_listening(
                    lambda: SpeechRecognitionEngine(audio_path, max_clip_seconds=max_clip_seconds)
                ),
                lambda snap: snap.listening,
            )
        finally:
            audio_path.unlink(missing_ok=True)
            audio_path.with_suffix(".wav").unlink(missing_ok=True)
        await self._show_state(update)
