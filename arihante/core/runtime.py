"""Application runtime wiring."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from arihante.adapters.completion_factory import create_completion_client
from arihante.adapters.completion_service import CompletionService
from arihante.config.secrets import load_runtime_secrets
from arihante.config.settings import SettingsConfig, load_settings
from arihante.core.controller import InteractionController
from arihante.core.voice import detect_voice_capability
from arihante.models.interaction import ResultData
from arihante.secrets.factory import DEFAULT_SERVICE_NAME
from arihante.security.rate_limit import LimitPolicy, RateLimiter

LOGGER = logging.getLogger(__name__)


class _ChatCompletion:
    """Completion backend bound to one chat, rate limited per chat."""

    def __init__(self, runtime: "AppRuntime", chat_id: int) -> None:
        self._runtime = runtime
        self._chat_id = chat_id

    async def generate(self, prompt: str, context: Optional[str] = None) -> ResultData:
        self._runtime.check_rate(self._chat_id, "request")
        return await self._runtime.completion.generate(prompt, context)


class AppRuntime:
    def __init__(
        self,
        workspace_root: Path,
        settings_path: Path,
        secret_service_name: str = DEFAULT_SERVICE_NAME,
    ) -> None:
        self.workspace_root = workspace_root.resolve()
        self.settings: SettingsConfig = load_settings(settings_path)
        self.instance_id = self.settings.instance.id
        self.secret_service_name = secret_service_name
        self.voice_dir = self.workspace_root / "data" / "voice" / self.instance_id

        secrets = load_runtime_secrets(
            service_name=secret_service_name,
            engine_mode=self.settings.engine.mode,
        )
        self.telegram_bot_token = secrets.telegram_bot_token

        client = create_completion_client(
            settings=self.settings,
            claude_api_key=secrets.claude_api_key,
            codex_api_key=secrets.codex_api_key,
            gemini_api_key=secrets.gemini_api_key,
        )
        self.completion = CompletionService(client)
        self.voice_capability = detect_voice_capability(self.settings.voice.enabled)
        self.rates = RateLimiter()
        self._controllers: dict[int, InteractionController] = {}
        LOGGER.info(
            "runtime ready instance_id=%s engine_mode=%s voice_capability=%s",
            self.instance_id,
            self.settings.engine.mode,
            self.voice_capability,
        )

    def check_rate(self, chat_id: int, kind: str) -> None:
        cfg = self.settings.rate_limit
        if kind == "voice":
            limit = LimitPolicy(max_events=cfg.voice_per_minute, window_sec=60)
        else:
            limit = LimitPolicy(max_events=cfg.request_per_minute, window_sec=60)
        self.rates.check(chat_id=chat_id, channel=kind, policy=limit)

    def controller_for(self, chat_id: int) -> InteractionController:
        controller = self._controllers.get(chat_id)
        if controller is None:
            controller = InteractionController(
                backend=_ChatCompletion(self, chat_id),
                voice_capability=self.voice_capability,
                daily_prompt=self.settings.prompts.daily,
                voice_language=self.settings.voice.language,
            )
            self._controllers[chat_id] = controller
        return controller

    def get_runtime_status(self) -> dict[str, str]:
        return {
            "instance_id": self.instance_id,
            "engine_mode": self.settings.engine.mode,
            "settings_version": self.settings.version,
            "voice": "on" if self.voice_capability else "off",
            "active_chats": str(len(self._controllers)),
        }
