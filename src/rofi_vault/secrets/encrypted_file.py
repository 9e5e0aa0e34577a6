"""Fernet-encrypted JSON file backend for the credential store.

For hosts without a keyring daemon (headless sessions, minimal window
managers). Derives an encryption key from a master password using
PBKDF2-HMAC-SHA256, then encrypts the whole JSON token map with Fernet.
Entries are keyed ``"<service>/<account>"``.
"""

from __future__ import annotations

import base64
import json
import os
import pathlib

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from rofi_vault.errors import CredentialStoreError
from rofi_vault.secrets.store import CredentialStore

# Fixed salt -- acceptable for a local-only file where the threat model is
# casual disk access, not offline brute-force against a leaked database.
_SALT = b"rofi-vault-credentials-v1"
_ITERATIONS = 480_000


def _derive_key(master_password: str) -> bytes:
    """Derive a 32-byte Fernet key from the master password via PBKDF2."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_SALT,
        iterations=_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(master_password.encode("utf-8")))


def _key(service: str, account: str) -> str:
    return f"{service}/{account}"


class EncryptedFileStore(CredentialStore):
    """Stores tokens as a Fernet-encrypted JSON file on disk.

    Parameters
    ----------
    file_path:
        Path to the encrypted file. Created on first write.
    master_password:
        Password used to derive the Fernet encryption key via PBKDF2.
    """

    def __init__(self, file_path: pathlib.Path, master_password: str) -> None:
        self._path = file_path
        self._fernet = Fernet(_derive_key(master_password))

    def _read_store(self) -> dict[str, str]:
        """Read and decrypt the file. Returns an empty dict if it is missing."""
        if not self._path.exists():
            return {}
        try:
            plaintext = self._fernet.decrypt(self._path.read_bytes())
            data = json.loads(plaintext)
        except InvalidToken as exc:
            raise CredentialStoreError(f"cannot decrypt {self._path} (wrong password?)") from exc
        except (OSError, ValueError) as exc:
            raise CredentialStoreError(f"cannot read {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CredentialStoreError(f"{self._path} does not hold a credential map")
        return data

    def _write_store(self, data: dict[str, str]) -> None:
        """Encrypt and atomically replace the file."""
        ciphertext = self._fernet.encrypt(json.dumps(data, sort_keys=True).encode("utf-8"))
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(ciphertext)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise CredentialStoreError(f"cannot write {self._path}: {exc}") from exc

    def get_password(self, service: str, account: str) -> str | None:
        return self._read_store().get(_key(service, account))

    def set_password(self, service: str, account: str, token: str) -> None:
        store = self._read_store()
        store[_key(service, account)] = token
        self._write_store(store)

    def delete_password(self, service: str, account: str) -> None:
        store = self._read_store()
        if store.pop(_key(service, account), None) is not None:
            self._write_store(store)
