"""Settings loader for the Arihante assistant bot."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re
from typing import Any

import yaml

from arihante.core.orchestrator import DEFAULT_DAILY_PROMPT
from arihante.core.voice import DEFAULT_LANGUAGE

ENGINE_MODES = ("claude_api", "codex_api", "gemini_api")
_LANGUAGE_TAG = re.compile(r"^[a-z]{2,3}(-[A-Za-z0-9]{2,8})*$")


@dataclass(frozen=True)
class EngineConfig:
    mode: str
    timeout_seconds: int
    max_output_tokens: int
    claude_api_model: str
    codex_api_model: str
    gemini_api_model: str


@dataclass(frozen=True)
class PromptsConfig:
    daily: str


@dataclass(frozen=True)
class VoiceConfig:
    enabled: bool
    language: str
    max_clip_seconds: int


@dataclass(frozen=True)
class RateLimitConfig:
    request_per_minute: int
    voice_per_minute: int


@dataclass(frozen=True)
class InstanceConfig:
    id: str


@dataclass(frozen=True)
class SettingsConfig:
    version: str
    engine: EngineConfig
    prompts: PromptsConfig
    voice: VoiceConfig
    rate_limit: RateLimitConfig
    instance: InstanceConfig


class SettingsLoadError(RuntimeError):
    """Raised when settings cannot be loaded."""


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise SettingsLoadError(f"missing required settings key: {key}")
    return data[key]


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SettingsLoadError(f"{key} must be an object")
    return value


def _positive_int(value: Any, key: str) -> int:
    try:
        out = int(value)
    except (TypeError, ValueError) as exc:
        raise SettingsLoadError(f"{key} must be an integer") from exc
    if out <= 0:
        raise SettingsLoadError(f"{key} must be > 0")
    return out


def _bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise SettingsLoadError(f"{key} must be true or false")
    return value


def _model_name(engine_raw: dict[str, Any], key: str, default: str) -> str:
    value = str(engine_raw.get(key, default)).strip()
    if not value:
        raise SettingsLoadError(f"engine.{key} must not be empty")
    return value


def load_settings(path: Path) -> SettingsConfig:
    if not path.exists():
        raise SettingsLoadError(f"settings file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SettingsLoadError(f"settings file is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise SettingsLoadError("settings root must be an object")

    engine_raw = _section(raw, "engine")
    prompts_raw = _section(raw, "prompts")
    voice_raw = _section(raw, "voice")
    rate_raw = _section(raw, "rate_limit")
    instance_raw = _section(raw, "instance")

    mode = str(engine_raw.get("mode", "claude_api")).strip()
    if mode not in ENGINE_MODES:
        raise SettingsLoadError(f"invalid engine.mode: {mode}")

    daily_prompt = str(prompts_raw.get("daily", DEFAULT_DAILY_PROMPT)).strip()
    if not daily_prompt:
        raise SettingsLoadError("prompts.daily must not be empty")

    voice_language = str(voice_raw.get("language", DEFAULT_LANGUAGE)).strip()
    if not _LANGUAGE_TAG.fullmatch(voice_language):
        raise SettingsLoadError(f"invalid voice.language: {voice_language}")

    instance_id = str(instance_raw.get("id", "default")).strip()
    if not re.fullmatch(r"[A-Za-z0-9_-]{1,40}", instance_id):
        raise SettingsLoadError(f"invalid instance.id: {instance_id}")

    return SettingsConfig(
        version=str(_require(raw, "version")),
        engine=EngineConfig(
            mode=mode,
            timeout_seconds=_positive_int(engine_raw.get("timeout_seconds", 60), "engine.timeout_seconds"),
            max_output_tokens=_positive_int(engine_raw.get("max_output_tokens", 600), "engine.max_output_tokens"),
            claude_api_model=_model_name(engine_raw, "claude_api_model", "claude-sonnet-4-5"),
            codex_api_model=_model_name(engine_raw, "codex_api_model", "gpt-5-mini"),
            gemini_api_model=_model_name(engine_raw, "gemini_api_model", "gemini-2.5-flash"),
        ),
        prompts=PromptsConfig(daily=daily_prompt),
        voice=VoiceConfig(
            enabled=_bool(voice_raw.get("enabled", True), "voice.enabled"),
            language=voice_language,
            max_clip_seconds=_positive_int(voice_raw.get("max_clip_seconds", 60), "voice.max_clip_seconds"),
        ),
        rate_limit=RateLimitConfig(
            request_per_minute=_positive_int(rate_raw.get("request_per_minute", 6), "rate_limit.request_per_minute"),
            voice_per_minute=_positive_int(rate_raw.get("voice_per_minute", 6), "rate_limit.voice_per_minute"),
        ),
        instance=InstanceConfig(id=instance_id),
    )
