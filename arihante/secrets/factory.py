"""Secret store factory based on OS."""

from __future__ import annotations

import platform

from arihante.secrets.base import SecretStore, SecretStoreError
from arihante.secrets.keyring_store import KeyringSecretStore

DEFAULT_SERVICE_NAME = "arihante"

_BACKENDS = {
    "darwin": "Keychain",
    "windows": "Credential Manager",
}


def create_secret_store(service_name: str = DEFAULT_SERVICE_NAME) -> SecretStore:
    label = _BACKENDS.get(platform.system().lower())
    if label is None:
        raise SecretStoreError(
            f"unsupported OS for secret storage: {platform.system()} "
            "(supported: macOS, Windows)"
        )
    return KeyringSecretStore(service_name=service_name, backend_label=label)
