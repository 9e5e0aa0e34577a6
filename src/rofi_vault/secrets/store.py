"""Abstract interface for the process-wide credential store."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CredentialStore(ABC):
    """Persists opaque tokens under a (service, account) pair.

    Implementations raise :class:`~rofi_vault.errors.CredentialStoreError`
    when the backend itself fails; a missing entry is not a failure.
    """

    @abstractmethod
    def get_password(self, service: str, account: str) -> str | None:
        """Return the stored token, or ``None`` if there is none."""

    @abstractmethod
    def set_password(self, service: str, account: str, token: str) -> None:
        """Store or replace the token."""

    @abstractmethod
    def delete_password(self, service: str, account: str) -> None:
        """Delete the token. Does not raise if the entry does not exist."""
