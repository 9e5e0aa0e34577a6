"""Abstract base class for credential providers.

A provider adapts one backend (a vault CLI, a directory of GPG files,
Terraform outputs) to the common :class:`~rofi_vault.models.Item` model.
Subclasses declare a pydantic ``Settings`` model for their opaque config
block and implement ``_fetch_items`` and ``_read_field``; this base class
owns config validation, the item cache, the field capability check and
action dispatch.
"""

from __future__ import annotations

import logging
import pathlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, ValidationError

from rofi_vault.cache import Cache
from rofi_vault.errors import FieldNotAvailableError, ProviderConfigError
from rofi_vault.models import Action, Item, ItemField
from rofi_vault.secrets.store import CredentialStore

logger = logging.getLogger(__name__)


@dataclass
class ProviderContext:
    """Shared collaborators handed to every provider at construction.

    Parameters
    ----------
    cache_dir:
        Directory holding one ``<provider name>.json`` cache per provider.
    credential_store:
        Where session tokens are persisted between runs.
    prompt_password:
        Asks the user for a secret; called with the prompt text.
    """

    cache_dir: pathlib.Path
    credential_store: CredentialStore
    prompt_password: Callable[[str], str]

    def cache_path(self, provider_name: str) -> pathlib.Path:
        return self.cache_dir / f"{provider_name}.json"


class ProviderSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cache: bool = True


class Provider(ABC):
    """Base class every backend provider extends.

    Class attributes:
        provider_type: Registry key (e.g. ``"bitwarden"``).
        Settings:      pydantic model for the provider's ``config`` block.
    """

    provider_type: str = "base"
    Settings: type[ProviderSettings] = ProviderSettings

    def __init__(self, name: str, config: Any, context: ProviderContext) -> None:
        self.name = name
        self.context = context
        try:
            self.settings = self.Settings.model_validate(config if config is not None else {})
        except ValidationError as exc:
            raise ProviderConfigError(
                f"invalid config for {self.provider_type} provider {name!r}: {exc}"
            ) from exc
        self._cache = Cache.try_load(context.cache_path(name)) if self.settings.cache else None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_items(self) -> list[Item]:
        """Fetch a fresh listing from the backend and refresh the cache."""
        items = self._fetch_items()
        if self._cache is not None:
            self._cache.replace(items)
        logger.info("%s: listed %d items", self.name, len(items))
        return items

    def cached_items(self) -> list[Item]:
        """Return the last persisted listing without touching the backend."""
        if self._cache is None:
            return []
        return self._cache.items()

    @abstractmethod
    def _fetch_items(self) -> list[Item]:
        """Return the backend's entries projected onto the item model."""

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def read_field(self, item: Item, field: ItemField) -> str:
        """Return the plaintext of *field* on *item*.

        Raises
        ------
        FieldNotAvailableError
            If *item* did not declare *field* when it was listed.
        """
        if not item.has_field(field):
            raise FieldNotAvailableError(f"{item.title!r} has no {field.label} field")
        return self._read_field(item, field)

    @abstractmethod
    def _read_field(self, item: Item, field: ItemField) -> str:
        """Fetch one declared field from the backend."""

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def list_actions(self) -> list[Action]:
        return []

    def do_action(self, action: Action) -> None:
        """Run *action*; actions this provider does not offer are ignored."""
        if action not in self.list_actions():
            logger.info("%s: action %s not supported, ignoring", self.name, action.value)
            return
        self._do_action(action)

    def _do_action(self, action: Action) -> None:
        logger.info("%s: no handler for action %s, ignoring", self.name, action.value)
