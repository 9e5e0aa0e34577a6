"""Menu orchestration: builds providers from settings and drives rofi.

One run of :meth:`App.show` is a small loop:

    1. show the current provider's items (cached listing first, if any)
    2. custom keys sync, lock, or switch to another provider
    3. an item selection opens a second menu with its fields
    4. the chosen field's plaintext is returned to the caller
"""

from __future__ import annotations

import functools
import html
import logging
import pathlib
from typing import Callable

from rofi_vault import rofi
from rofi_vault.config import Settings, load_settings
from rofi_vault.errors import ProviderConfigError, RofiError
from rofi_vault.models import Action, Item, ItemField
from rofi_vault.providers import Provider, ProviderContext, create_provider
from rofi_vault.rofi import ResponseKind, RofiResponse, RofiWindow
from rofi_vault.secrets import create_credential_store
from rofi_vault.secrets.store import CredentialStore

logger = logging.getLogger(__name__)

SYNC_KEY = 1
LOCK_KEY = 2
# Provider shortcuts take the custom keys after sync and lock.
FIRST_SHORTCUT_KEY = 3
LAST_SHORTCUT_KEY = 19


class App:
    """The interactive credential menu.

    Parameters
    ----------
    settings:
        Loaded settings; ``settings.providers`` order is menu order.
    credential_store:
        Overrides the store built from ``settings.credential_store``.
    prompt_password:
        Overrides the rofi password prompt.
    """

    def __init__(
        self,
        settings: Settings,
        credential_store: CredentialStore | None = None,
        prompt_password: Callable[[str], str] | None = None,
    ) -> None:
        self.settings = settings
        self.context = ProviderContext(
            cache_dir=settings.resolved_cache_dir(),
            credential_store=credential_store or create_credential_store(settings.credential_store),
            prompt_password=prompt_password or functools.partial(
                rofi.prompt_password, executable=settings.rofi.executable,
            ),
        )

        self.providers: dict[str, Provider] = {}
        for name, entry in settings.providers.items():
            try:
                self.providers[name] = create_provider(name, entry.type, entry.config, self.context)
            except ProviderConfigError as exc:
                logger.error("Skipping provider %s: %s", name, exc)
        if not self.providers:
            raise ProviderConfigError("no usable providers configured")

        self.shortcuts: dict[int, str] = {}
        key = FIRST_SHORTCUT_KEY
        for name, entry in settings.providers.items():
            if not entry.shortcut or name not in self.providers:
                continue
            if key > LAST_SHORTCUT_KEY:
                logger.warning("No custom key left for the %s shortcut, skipping", name)
                continue
            self.shortcuts[key] = name
            key += 1

    @classmethod
    def from_config(cls, config_path: pathlib.Path | None = None) -> App:
        return cls(load_settings(config_path))

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    def _window(self, prompt: str) -> RofiWindow:
        return RofiWindow(prompt).executable(self.settings.rofi.executable)

    def _item_menu(self, provider: Provider, items: list[Item]) -> RofiResponse:
        rofi_settings = self.settings.rofi
        hints = [
            f"<b>{html.escape(rofi_settings.sync_key)}</b>: sync",
            f"<b>{html.escape(rofi_settings.lock_key)}</b>: lock",
        ]
        window = (
            self._window(provider.name)
            .matching(rofi_settings.matching)
            .lines(rofi_settings.lines)
            .kb_custom(SYNC_KEY, rofi_settings.sync_key)
            .kb_custom(LOCK_KEY, rofi_settings.lock_key)
            .format("i")
            .add_args("-markup-rows", "-no-custom")
        )
        if rofi_settings.width is not None:
            window.width(rofi_settings.width)
        for key, name in self.shortcuts.items():
            shortcut = self.settings.providers[name].shortcut
            assert shortcut is not None
            window.kb_custom(key, shortcut)
            hints.append(f"<b>{html.escape(shortcut)}</b>: {html.escape(name)}")
        window.message(" | ".join(hints))
        return window.show([html.escape(_menu_row(item.title), quote=False) for item in items])

    def _field_menu(self, item: Item) -> ItemField | None:
        labels = [_menu_row(field.label) for field in item.fields]
        response = (
            self._window(_menu_row(item.title))
            .lines(len(labels))
            .format("i")
            .add_args("-no-custom")
            .show(labels)
        )
        if response.kind is not ResponseKind.ENTRY:
            return None
        return item.fields[_selected_index(response, len(labels))]

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def items_for(self, provider: Provider, use_cache: bool = True) -> list[Item]:
        """Items to display, sorted by title; the cache is preferred when non-empty."""
        items = provider.cached_items() if use_cache else []
        if not items:
            items = provider.list_items()
        return sorted(items, key=Item.sort_key)

    def show(self, provider_name: str | None = None, refresh: bool = False) -> str | None:
        """Run the menu and return the selected field value, or ``None``."""
        name = provider_name or next(iter(self.providers))
        if name not in self.providers:
            raise ProviderConfigError(f"no provider named {name!r}")

        use_cache = not refresh
        while True:
            provider = self.providers[name]
            items = self.items_for(provider, use_cache=use_cache)
            response = self._item_menu(provider, items)

            if response.kind is ResponseKind.CANCEL:
                return None

            if response.kind is ResponseKind.CUSTOM_KEY:
                if response.key == SYNC_KEY:
                    # Providers without a sync action just get re-listed.
                    if Action.SYNC in provider.list_actions():
                        provider.do_action(Action.SYNC)
                        use_cache = True
                    else:
                        use_cache = False
                elif response.key == LOCK_KEY:
                    provider.do_action(Action.LOCK)
                    return None
                elif response.key in self.shortcuts:
                    name = self.shortcuts[response.key]
                    use_cache = not refresh
                else:
                    logger.warning("Unbound custom key %s", response.key)
                continue

            item = items[_selected_index(response, len(items))]
            if not item.fields:
                logger.warning("%s: %r has no readable fields", provider.name, item.title)
                continue
            field = self._field_menu(item)
            if field is None:
                continue
            return provider.read_field(item, field)


def _menu_row(text: str) -> str:
    """Flatten *text* to a single rofi row; rows are matched back by index."""
    return " ".join(text.splitlines())


def _selected_index(response: RofiResponse, count: int) -> int:
    value = response.expect_entry()
    try:
        index = int(value)
    except ValueError:
        raise RofiError(f"expected an index from rofi, got {value!r}") from None
    if not 0 <= index < count:
        raise RofiError(f"rofi returned index {index} for {count} entries")
    return index
