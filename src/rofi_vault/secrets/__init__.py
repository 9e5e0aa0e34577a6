"""Credential store backends for persisted session tokens."""

from __future__ import annotations

import os
import pathlib

from rofi_vault.config import APP_NAME, CredentialStoreSettings, xdg_config_home
from rofi_vault.errors import ConfigError
from rofi_vault.secrets.store import CredentialStore


def create_credential_store(settings: CredentialStoreSettings) -> CredentialStore:
    """Create the credential store selected by *settings*."""
    if settings.backend == "keyring":
        from rofi_vault.secrets.keyring_store import KeyringStore

        return KeyringStore()

    if settings.backend == "encrypted_file":
        from rofi_vault.secrets.encrypted_file import EncryptedFileStore

        master_password = os.environ.get(settings.password_env)
        if not master_password:
            raise ConfigError(
                f"encrypted_file credential store needs ${settings.password_env}"
            )
        path = (
            pathlib.Path(settings.path).expanduser()
            if settings.path
            else xdg_config_home() / APP_NAME / "credentials.enc"
        )
        return EncryptedFileStore(file_path=path, master_password=master_password)

    raise ConfigError(f"unknown credential store backend: {settings.backend}")


__all__ = ["CredentialStore", "create_credential_store"]
