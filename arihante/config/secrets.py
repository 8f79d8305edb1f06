"""Secret accessor facade.

Accounts in OS store:
- telegram_bot_token
- claude_api_key
- codex_api_key
- gemini_api_key
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from arihante.secrets.base import SecretStore, SecretStoreError, require_secret
from arihante.secrets.factory import DEFAULT_SERVICE_NAME, create_secret_store

ENGINE_KEY_ACCOUNTS = {
    "claude_api": "claude_api_key",
    "codex_api": "codex_api_key",
    "gemini_api": "gemini_api_key",
}


@dataclass(frozen=True)
class RuntimeSecrets:
    telegram_bot_token: str
    claude_api_key: Optional[str]
    codex_api_key: Optional[str]
    gemini_api_key: Optional[str]


def _optional_secret(store: SecretStore, account: str) -> Optional[str]:
    try:
        return store.get_secret(account)
    except SecretStoreError:
        return None


def load_runtime_secrets(
    service_name: str = DEFAULT_SERVICE_NAME,
    engine_mode: Optional[str] = None,
) -> RuntimeSecrets:
    """Load the bot token plus engine keys; the key for engine_mode is mandatory."""
    store = create_secret_store(service_name=service_name)
    required_account = ENGINE_KEY_ACCOUNTS.get(engine_mode or "")

    keys: dict[str, Optional[str]] = {}
    for account in ENGINE_KEY_ACCOUNTS.values():
        if account == required_account:
            keys[account] = require_secret(store, account)
        else:
            keys[account] = _optional_secret(store=store, account=account)

    return RuntimeSecrets(
        telegram_bot_token=require_secret(store, "telegram_bot_token"),
        claude_api_key=keys["claude_api_key"],
        codex_api_key=keys["codex_api_key"],
        gemini_api_key=keys["gemini_api_key"],
    )


__all__ = ["RuntimeSecrets", "load_runtime_secrets", "SecretStoreError"]
