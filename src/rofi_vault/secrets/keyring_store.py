"""Credential store on the host keyring (Secret Service, macOS Keychain, ...)."""

from __future__ import annotations

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from rofi_vault.errors import CredentialStoreError
from rofi_vault.secrets.store import CredentialStore


class KeyringStore(CredentialStore):
    """Stores tokens through the ``keyring`` library's active backend."""

    def get_password(self, service: str, account: str) -> str | None:
        try:
            return keyring.get_password(service, account)
        except KeyringError as exc:
            raise CredentialStoreError(f"keyring lookup failed: {exc}") from exc

    def set_password(self, service: str, account: str, token: str) -> None:
        try:
            keyring.set_password(service, account, token)
        except KeyringError as exc:
            raise CredentialStoreError(f"keyring write failed: {exc}") from exc

    def delete_password(self, service: str, account: str) -> None:
        try:
            keyring.delete_password(service, account)
        except PasswordDeleteError:
            # Raised when the entry does not exist.
            pass
        except KeyringError as exc:
            raise CredentialStoreError(f"keyring delete failed: {exc}") from exc
