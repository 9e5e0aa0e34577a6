"""Exception taxonomy for rofi-vault.

Vault errors are recoverable at the provider layer (they trigger
re-authentication or surface to the menu); configuration errors are fatal
only for the provider they concern.
"""

from __future__ import annotations

# Longest slice of backend output carried in an exception message.
EXCERPT_LIMIT = 64


def excerpt(text: str, limit: int = EXCERPT_LIMIT) -> str:
    """Return at most *limit* characters of *text*, marking truncation."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class RofiVaultError(Exception):
    """Base class for every error raised by rofi-vault."""


# ---------------------------------------------------------------------------
# Vault / session errors
# ---------------------------------------------------------------------------

class VaultError(RofiVaultError):
    """A vault subprocess call failed."""


class UnlockFailedError(VaultError):
    """The vault rejected the master password (or printed no token)."""

    def __init__(self, message: str = "vault unlock failed") -> None:
        super().__init__(message)


class DecryptionFailedError(VaultError):
    """The vault could not decrypt with the supplied session token."""

    def __init__(self, message: str = "vault failed to decrypt") -> None:
        super().__init__(message)


class UnexpectedResponseError(VaultError):
    """The vault answered, but not with the literal or status we expected.

    ``response`` keeps the raw output for callers that want to inspect it;
    the message only ever shows a bounded excerpt.
    """

    def __init__(self, response: str, context: str = "unexpected vault response") -> None:
        self.response = response
        super().__init__(f"{context}: {excerpt(response.strip())!r}")


class ProtocolError(VaultError):
    """Structured output could not be decoded."""

    def __init__(self, message: str, output: str = "") -> None:
        self.excerpt = excerpt(output)
        super().__init__(f"{message}: {self.excerpt!r}" if output else message)


class VaultEncodingError(ProtocolError):
    """Vault output was not valid UTF-8."""


class VaultProcessError(VaultError):
    """The vault executable could not be spawned."""


# ---------------------------------------------------------------------------
# Provider / configuration errors
# ---------------------------------------------------------------------------

class FieldNotAvailableError(RofiVaultError):
    """A field was requested that the item never declared."""


class ProviderConfigError(RofiVaultError):
    """A provider could not be constructed from its configuration."""


class ConfigError(RofiVaultError):
    """The settings file could not be parsed."""


class CredentialStoreError(RofiVaultError):
    """The credential store backend failed."""


# ---------------------------------------------------------------------------
# Selection UI errors
# ---------------------------------------------------------------------------

class RofiError(RofiVaultError):
    """rofi exited with a status outside its protocol, or answered unexpectedly."""


class SelectionCancelled(RofiError):
    """The user dismissed a menu that required an answer."""
