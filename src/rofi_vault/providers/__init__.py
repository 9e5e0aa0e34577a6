"""Credential providers.

Available provider types, keyed by the ``type`` used in the config file.
"""

from __future__ import annotations

from typing import Any

from rofi_vault.errors import ProviderConfigError

from .base import Provider, ProviderContext
from .bitwarden import BitwardenProvider
from .password_store import PasswordStoreProvider
from .terraform import TerraformProvider

# Registry of available providers
PROVIDERS: dict[str, type[Provider]] = {
    "bitwarden": BitwardenProvider,
    "password_store": PasswordStoreProvider,
    "pass": PasswordStoreProvider,  # Alias
    "terraform": TerraformProvider,
}


def create_provider(
    name: str,
    provider_type: str,
    config: Any,
    context: ProviderContext,
) -> Provider:
    """Instantiate the provider registered under *provider_type*.

    Raises
    ------
    ProviderConfigError
        If the type is unknown or the config does not validate.
    """
    provider_class = PROVIDERS.get(provider_type)
    if provider_class is None:
        raise ProviderConfigError(f"provider {name!r} has unknown type {provider_type!r}")
    return provider_class(name, config, context)


__all__ = [
    "PROVIDERS",
    "BitwardenProvider",
    "PasswordStoreProvider",
    "Provider",
    "ProviderContext",
    "TerraformProvider",
    "create_provider",
]
