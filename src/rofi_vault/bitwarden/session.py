"""Bitwarden CLI session lifecycle.

A :class:`Session` wraps one ``BW_SESSION`` token. A token loaded from the
credential store starts ``UNVERIFIED`` and must pass :meth:`Session.is_unlocked`
before it is trusted; a token produced by :meth:`Session.unlock` starts
``VERIFIED``. Once ``INVALID`` a session stays that way; a fresh
``unlock`` is the only way to get a usable one again.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from rofi_vault.bitwarden.records import UNLOCKED, Folder, Status, VaultItem
from rofi_vault.errors import (
    DecryptionFailedError,
    FieldNotAvailableError,
    ProtocolError,
    UnexpectedResponseError,
    UnlockFailedError,
)
from rofi_vault.models import FieldKind, ItemField
from rofi_vault.vault_process import VaultProcess

logger = logging.getLogger(__name__)

# Literal confirmation printed by ``bw lock``.
LOCKED_CONFIRMATION = "Your vault is locked."

_STATUS = TypeAdapter(Status)
_ITEM = TypeAdapter(VaultItem)
_FOLDERS = TypeAdapter(list[Folder])
_ITEMS = TypeAdapter(list[VaultItem])


class SessionState(str, enum.Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    INVALID = "invalid"


def _parse(adapter: Any, data: Any, what: str) -> Any:
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        # ValidationError text echoes input values, which may be secrets.
        raise ProtocolError(
            f"unexpected {what} record from bw ({exc.error_count()} validation errors)"
        ) from None


class Session:
    """One authenticated (or not yet verified) handle to a Bitwarden vault.

    Parameters
    ----------
    token:
        Opaque ``BW_SESSION`` value. Never logged.
    executable:
        The ``bw`` binary to invoke.
    state:
        Initial trust state.
    """

    def __init__(
        self,
        token: str,
        executable: str = "bw",
        state: SessionState = SessionState.UNVERIFIED,
    ) -> None:
        self._token = token
        self._process = VaultProcess(executable, token=token)
        self.state = state

    def __repr__(self) -> str:
        return f"Session(executable={self._process.executable!r}, state={self.state.value})"

    @property
    def token(self) -> str:
        return self._token

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, token: str, executable: str = "bw") -> Session:
        """Wrap a previously stored token. No I/O; the result is unverified."""
        return cls(token, executable=executable)

    @classmethod
    def unlock(cls, password: str, executable: str = "bw") -> Session:
        """Unlock the vault with the master password and return a verified session.

        Raises
        ------
        UnlockFailedError
            If ``bw unlock --raw`` printed no token.
        """
        output = VaultProcess(executable).run(["unlock", "--raw"], input=password)
        token = output.stdout.strip()
        if not token:
            logger.info("bw unlock returned no session key (exit %d)", output.returncode)
            raise UnlockFailedError()
        return cls(token, executable=executable, state=SessionState.VERIFIED)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def status(self) -> Status:
        return _parse(_STATUS, self._process.run_json(["status"]), "status")

    def is_unlocked(self) -> bool:
        """Probe ``bw status`` and record the outcome in :attr:`state`."""
        try:
            status = self.status()
        except DecryptionFailedError:
            self.state = SessionState.INVALID
            raise

        if status.status == UNLOCKED:
            if self.state is not SessionState.INVALID:
                self.state = SessionState.VERIFIED
            return self.state is SessionState.VERIFIED

        logger.debug("bw status reports %r", status.status)
        self.state = SessionState.INVALID
        return False

    def lock(self) -> None:
        response = self._process.run_text(["lock"])
        if response.strip() != LOCKED_CONFIRMATION:
            raise UnexpectedResponseError(response, context="bw lock")
        self.state = SessionState.INVALID

    def sync(self) -> None:
        self._process.run_text(["sync"])

    # ------------------------------------------------------------------
    # Data retrieval
    # ------------------------------------------------------------------

    def list_folders(self) -> list[Folder]:
        return _parse(_FOLDERS, self._process.run_json(["list", "folders"]), "folder")

    def list_items(self) -> list[VaultItem]:
        return _parse(_ITEMS, self._process.run_json(["list", "items"]), "item")

    def get_item(self, item_id: str) -> VaultItem:
        return _parse(_ITEM, self._process.run_json(["get", "item", item_id]), "item")

    def read_field(self, item_id: str, field: ItemField) -> str:
        """Fetch the plaintext of *field* on the item with *item_id*."""
        if field.kind is not FieldKind.OTHER:
            return self._process.run_text(["get", field.kind.value, item_id])

        for custom in self.get_item(item_id).fields:
            if custom.name == field.name:
                return custom.value or ""
        raise FieldNotAvailableError(f"item {item_id} has no field {field.name!r}")
