"""Provider for a ``pass``-style password store (a tree of ``*.gpg`` files).

Listing only walks the directory; nothing is decrypted until a field is
read. Because a file's extra lines are unknown without decrypting it, only
the password (the first line) is declared.
"""

from __future__ import annotations

import logging
import pathlib

from rofi_vault.models import Item, ItemField
from rofi_vault.providers.base import Provider, ProviderSettings
from rofi_vault.vault_process import VaultProcess

logger = logging.getLogger(__name__)

# Prefix gpg writes to stderr when it cannot decrypt a file.
GPG_DECRYPT_FAILURE = "gpg: decryption failed"


class PasswordStoreProvider(Provider):
    """Entries from a GPG-encrypted password store directory.

    Config:
        path:       Store root (default: "~/.password-store")
        executable: The ``gpg`` binary (default: "gpg")
    """

    provider_type = "password_store"

    class Settings(ProviderSettings):
        path: str = "~/.password-store"
        executable: str = "gpg"

    settings: Settings

    @property
    def root(self) -> pathlib.Path:
        return pathlib.Path(self.settings.path).expanduser()

    def _fetch_items(self) -> list[Item]:
        root = self.root
        if not root.is_dir():
            logger.warning("%s: password store %s does not exist", self.name, root)
            return []

        items: list[Item] = []
        for path in sorted(root.rglob("*.gpg")):
            relative = path.relative_to(root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            entry = relative.with_suffix("").as_posix()
            items.append(Item(id=entry, title=entry, fields=[ItemField.PASSWORD]))
        return items

    def _read_field(self, item: Item, field: ItemField) -> str:
        gpg = VaultProcess(
            self.settings.executable,
            failure_signatures=(GPG_DECRYPT_FAILURE,),
        )
        plaintext = gpg.run_text(
            ["--quiet", "--batch", "--decrypt", str(self.root / f"{item.id}.gpg")],
        )
        return plaintext.split("\n", 1)[0]
