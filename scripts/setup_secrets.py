#!/usr/bin/env python3
"""First-run secret setup for the Arihante assistant bot.

Stores the Telegram bot token and the API key of the configured completion
engine in the OS credential store.
"""

from __future__ import annotations

import argparse
import getpass
import importlib
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from arihante.config.secrets import ENGINE_KEY_ACCOUNTS  # noqa: E402
from arihante.config.settings import SettingsLoadError, load_settings  # noqa: E402
from arihante.secrets.factory import DEFAULT_SERVICE_NAME  # noqa: E402


def ask_yes_no(question: str, default_yes: bool = True) -> bool:
    suffix = " [Y/n]: " if default_yes else " [y/N]: "
    while True:
        raw = input(question + suffix).strip().lower()
        if not raw:
            return default_yes
        if raw in {"y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer y or n.")


def _import_keyring():
    try:
        return importlib.import_module("keyring")
    except ImportError as exc:
        raise RuntimeError("keyring is required. Install dependencies first.") from exc


def set_secret_if_needed(service_name: str, account: str, required: bool) -> bool:
    keyring = _import_keyring()
    existing = keyring.get_password(service_name, account)
    if existing and not ask_yes_no(f"{account} is already stored. Replace it?", default_yes=False):
        print(f"Keeping existing {account}.")
        return True

    while True:
        value = getpass.getpass(f"Enter {account}: ").strip()
        if value:
            keyring.set_password(service_name, account, value)
            print(f"Stored {account}.")
            return True
        if required:
            print(f"{account} is required.")
            continue
        print(f"Skipped {account}.")
        return False


def main() -> int:
    parser = argparse.ArgumentParser(description="Arihante secret setup")
    parser.add_argument("--settings", default=str(REPO_ROOT / "config/settings.yaml"))
    parser.add_argument("--service-name", default=DEFAULT_SERVICE_NAME)
    args = parser.parse_args()

    try:
        settings = load_settings(Path(args.settings))
    except SettingsLoadError as exc:
        print(f"Settings are invalid: {exc}")
        return 2

    try:
        set_secret_if_needed(args.service_name, "telegram_bot_token", required=True)
        set_secret_if_needed(args.service_name, ENGINE_KEY_ACCOUNTS[settings.engine.mode], required=True)
    except RuntimeError as exc:
        print(str(exc))
        return 2
    except (KeyboardInterrupt, EOFError):
        print("\nSetup cancelled.")
        return 1

    print(f"Secrets ready for engine mode {settings.engine.mode} (service: {args.service_name}).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
