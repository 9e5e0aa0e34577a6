"""Bitwarden provider backed by the ``bw`` command-line client.

Session acquisition:
    1. Look up a stored ``BW_SESSION`` token in the credential store.
    2. Probe it once with ``bw status``; adopt it only if the vault reports
       ``unlocked``.
    3. Otherwise prompt for the master password, ``bw unlock --raw`` and
       persist the new token. Persistence failures are logged, not fatal.

The session is probed once per provider instance; later calls reuse it
without re-probing. A ``Failed to decrypt.`` banner on a data call drops
the session and repeats the call once with a freshly acquired one.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from rofi_vault.bitwarden.records import CustomFieldType, Folder, VaultItem
from rofi_vault.bitwarden.session import Session
from rofi_vault.errors import CredentialStoreError, DecryptionFailedError, UnlockFailedError
from rofi_vault.models import Action, Item, ItemField
from rofi_vault.providers.base import Provider, ProviderContext, ProviderSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Interactive unlock attempts per acquisition: the first try plus one retry.
UNLOCK_ATTEMPTS = 2


def folder_path(folder_id: str | None, folders: dict[str, Folder]) -> list[str]:
    """Resolve a folder reference to its path segments.

    No folder and a dangling folder reference both resolve to the root.
    """
    if folder_id is None:
        return []
    folder = folders.get(folder_id)
    if folder is None:
        return []
    return folder.name.split("/")


def item_fields(record: VaultItem) -> list[ItemField]:
    """Capability tags for the fields actually present on *record*."""
    fields: list[ItemField] = []
    if record.login is not None:
        if record.login.username is not None:
            fields.append(ItemField.USERNAME)
        if record.login.password is not None:
            fields.append(ItemField.PASSWORD)
        if record.login.totp is not None:
            fields.append(ItemField.TOTP)
    for custom in record.fields:
        if custom.name and custom.type != CustomFieldType.LINKED:
            field = ItemField.other(custom.name)
            if field not in fields:
                fields.append(field)
    return fields


def to_item(record: VaultItem, folders: dict[str, Folder]) -> Item:
    path = folder_path(record.folder_id, folders)
    return Item(
        id=record.id,
        title="/".join([*path, record.name]),
        fields=item_fields(record),
    )


class BitwardenProvider(Provider):
    """Items from a Bitwarden vault via the ``bw`` CLI.

    Config:
        cache:           Persist listings for instant menus (default: true)
        executable:      The ``bw`` binary (default: "bw")
        keyring_service: Credential store service name (default: "rofi_vault")
        keyring_account: Credential store account name (default: "BW_SESSION")
    """

    provider_type = "bitwarden"

    class Settings(ProviderSettings):
        executable: str = "bw"
        keyring_service: str = "rofi_vault"
        keyring_account: str = "BW_SESSION"

    settings: Settings

    def __init__(self, name: str, config: Any, context: ProviderContext) -> None:
        super().__init__(name, config, context)
        self._session: Session | None = None

    # ------------------------------------------------------------------
    # Session acquisition
    # ------------------------------------------------------------------

    def _stored_token(self) -> str | None:
        try:
            return self.context.credential_store.get_password(
                self.settings.keyring_service, self.settings.keyring_account,
            )
        except CredentialStoreError as exc:
            logger.warning("%s: could not read stored session key: %s", self.name, exc)
            return None

    def _restore_session(self) -> Session | None:
        token = self._stored_token()
        if not token:
            return None

        session = Session.open(token, executable=self.settings.executable)
        try:
            if session.is_unlocked():
                logger.debug("%s: reusing stored session", self.name)
                return session
            logger.info("%s: stored session key is not valid", self.name)
        except DecryptionFailedError:
            logger.info("%s: stored session key failed to decrypt", self.name)
        return None

    def _unlock_interactively(self) -> Session:
        last_error: UnlockFailedError | None = None
        for attempt in range(1, UNLOCK_ATTEMPTS + 1):
            prompt = "Master password" if attempt == 1 else "Wrong password, try again"
            password = self.context.prompt_password(prompt)
            try:
                session = Session.unlock(password, executable=self.settings.executable)
            except UnlockFailedError as exc:
                logger.warning("%s: unlock attempt %d failed", self.name, attempt)
                last_error = exc
                continue
            self._persist_token(session.token)
            return session
        assert last_error is not None
        raise last_error

    def _persist_token(self, token: str) -> None:
        try:
            self.context.credential_store.set_password(
                self.settings.keyring_service, self.settings.keyring_account, token,
            )
        except CredentialStoreError as exc:
            logger.warning("%s: failed to store session key: %s", self.name, exc)

    def _forget_token(self) -> None:
        try:
            self.context.credential_store.delete_password(
                self.settings.keyring_service, self.settings.keyring_account,
            )
        except CredentialStoreError as exc:
            logger.warning("%s: failed to delete stored session key: %s", self.name, exc)

    def get_session(self) -> Session:
        """Return the provider's session, acquiring one if needed."""
        if self._session is None:
            self._session = self._restore_session() or self._unlock_interactively()
        return self._session

    def _with_session(self, call: Callable[[Session], T]) -> T:
        session = self.get_session()
        try:
            return call(session)
        except DecryptionFailedError:
            logger.info("%s: session key failed to decrypt, unlocking again", self.name)
            self._session = None
            self._session = self._unlock_interactively()
            return call(self._session)

    # ------------------------------------------------------------------
    # Provider interface
    # ------------------------------------------------------------------

    def _fetch_items(self) -> list[Item]:
        def fetch(session: Session) -> list[Item]:
            folders = {f.id: f for f in session.list_folders() if f.id is not None}
            return [to_item(record, folders) for record in session.list_items()]

        return self._with_session(fetch)

    def _read_field(self, item: Item, field: ItemField) -> str:
        return self._with_session(lambda session: session.read_field(item.id, field))

    def list_actions(self) -> list[Action]:
        return [Action.SYNC, Action.LOCK]

    def _do_action(self, action: Action) -> None:
        if action is Action.SYNC:
            self.sync()
        elif action is Action.LOCK:
            self.lock()

    def sync(self) -> list[Item]:
        """Pull the vault from the server, then refresh the listing."""
        self._with_session(lambda session: session.sync())
        return self.list_items()

    def lock(self) -> None:
        """Lock the vault and forget the stored session key.

        Never prompts: with no session in memory the stored token (if any)
        is used to issue the lock.
        """
        session = self._session
        if session is None:
            token = self._stored_token()
            if token:
                session = Session.open(token, executable=self.settings.executable)

        self._session = None
        try:
            if session is not None:
                session.lock()
        finally:
            self._forget_token()
        logger.info("%s: vault locked", self.name)
