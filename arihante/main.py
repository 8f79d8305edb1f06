"""Arihante assistant Telegram bot entrypoint."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import re

from telegram import BotCommand, MenuButtonCommands
from telegram.ext import Application, ApplicationBuilder, CommandHandler, MessageHandler, filters

from arihante.adapters.completion_factory import CompletionFactoryError
from arihante.bot.handlers import TelegramHandlers
from arihante.config.settings import SettingsLoadError
from arihante.core.runtime import AppRuntime
from arihante.secrets.base import SecretStoreError
from arihante.secrets.factory import DEFAULT_SERVICE_NAME

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("telegram").setLevel(logging.WARNING)

BOT_COMMANDS = [
    BotCommand("start", "Show the current screen"),
    BotCommand("home", "Back to the home screen"),
    BotCommand("status", "Engine/runtime status"),
]


def _resolve_instance_id(raw: str) -> str:
    value = (raw or "default").strip()
    if not value:
        return "default"
    if not re.fullmatch(r"[A-Za-z0-9_-]{1,40}", value):
        raise ValueError("instance_id must match [A-Za-z0-9_-]{1,40}")
    return value


def _default_settings_path(workspace_root: Path, instance_id: str) -> Path:
    if instance_id == "default":
        return workspace_root / "config/settings.yaml"
    return workspace_root / "config" / "instances" / instance_id / "settings.yaml"


def _default_secret_service_name(instance_id: str) -> str:
    if instance_id == "default":
        return DEFAULT_SERVICE_NAME
    return f"{DEFAULT_SERVICE_NAME}.{instance_id}"


async def _post_init(application: Application) -> None:
    """Register command menu shown in Telegram chat UI."""
    await application.bot.set_my_commands(commands=BOT_COMMANDS)
    await application.bot.set_chat_menu_button(menu_button=MenuButtonCommands())


def main() -> int:
    parser = argparse.ArgumentParser(description="Arihante assistant Telegram runner")
    parser.add_argument(
        "--instance-id",
        help="Instance id for multi-bot isolation (default: default)",
    )
    args = parser.parse_args()

    workspace_root = Path(os.getenv("ARH_WORKSPACE_ROOT", Path(__file__).resolve().parents[1]))
    instance_id = _resolve_instance_id(args.instance_id or os.getenv("ARH_INSTANCE_ID", "default"))

    settings_path_raw = os.getenv("ARH_SETTINGS_PATH", "").strip()
    if settings_path_raw:
        settings_path = Path(settings_path_raw)
    else:
        settings_path = _default_settings_path(workspace_root=workspace_root, instance_id=instance_id)

    secret_service_name = os.getenv("ARH_SECRET_SERVICE_NAME", "").strip() or _default_secret_service_name(
        instance_id=instance_id
    )
    logging.info(
        "starting instance_id=%s settings=%s secret_service=%s",
        instance_id,
        settings_path,
        secret_service_name,
    )

    try:
        runtime = AppRuntime(
            workspace_root=workspace_root,
            settings_path=settings_path,
            secret_service_name=secret_service_name,
        )
    except SecretStoreError as exc:
        logging.error("startup blocked by missing secret: %s", exc)
        print(
            "Startup failed: required secret is missing in OS credential store.\n"
            f"- instance_id: {instance_id}\n"
            f"- secret_service: {secret_service_name}\n"
            f"- detail: {exc}\n"
            "Run scripts/setup_secrets.py first."
        )
        return 2
    except SettingsLoadError as exc:
        logging.error("startup blocked by invalid settings: %s", exc)
        print(
            "Startup failed: settings are invalid.\n"
            f"- settings: {settings_path}\n"
            f"- detail: {exc}"
        )
        return 2
    except CompletionFactoryError as exc:
        logging.error("startup blocked by completion engine: %s", exc)
        print(f"Startup failed: completion engine unavailable.\n- detail: {exc}")
        return 2

    handlers = TelegramHandlers(runtime)
    app = ApplicationBuilder().token(runtime.telegram_bot_token).post_init(_post_init).build()

    app.add_handler(CommandHandler("start", handlers.start))
    app.add_handler(CommandHandler("home", handlers.home))
    app.add_handler(CommandHandler("status", handlers.status))
    app.add_handler(CommandHandler(["solve", "done", "back"], handlers.menu_text))
    app.add_handler(MessageHandler(filters.VOICE, handlers.voice_note))
    app.add_handler(MessageHandler(filters.TEXT & (~filters.COMMAND), handlers.menu_text))

    app.run_polling(drop_pending_updates=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
