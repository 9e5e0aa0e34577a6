"""Shared test fixtures for rofi-vault tests.

Every external program (``bw``, ``rofi``, ``gpg``, ``terraform``) is
replaced by :class:`FakeProcesses`, which answers ``subprocess.run`` from
canned replies keyed by the full argv.
"""

from __future__ import annotations

import pathlib
import subprocess
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import MagicMock

import pytest

from rofi_vault.errors import CredentialStoreError
from rofi_vault.providers.base import ProviderContext
from rofi_vault.secrets.store import CredentialStore

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]


# ---------------------------------------------------------------------------
# Subprocess fake
# ---------------------------------------------------------------------------

@dataclass
class Reply:
    stdout: str | bytes = ""
    returncode: int = 0
    stderr: str | bytes = ""


@dataclass
class Call:
    argv: list[str]
    input: bytes | None
    env: dict[str, str] | None
    cwd: str | None
    kwargs: dict[str, Any] = field(default_factory=dict)


def _as_bytes(value: str | bytes) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


class FakeProcesses:
    """Stand-in for ``subprocess.run``.

    ``reply(*argv, ...)`` queues an answer for that exact argv; the last
    queued answer for an argv is repeated once the queue is drained.
    """

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._replies: dict[tuple[str, ...], list[Reply]] = {}

    def reply(
        self,
        *argv: str,
        stdout: str | bytes = "",
        returncode: int = 0,
        stderr: str | bytes = "",
    ) -> None:
        self._replies.setdefault(tuple(argv), []).append(Reply(stdout, returncode, stderr))

    def __call__(self, argv: list[str], input: bytes | None = None, **kwargs: Any) -> Any:
        env = kwargs.pop("env", None)
        cwd = kwargs.pop("cwd", None)
        self.calls.append(Call(argv=list(argv), input=input, env=env, cwd=cwd, kwargs=kwargs))

        queue = self._replies.get(tuple(argv))
        if not queue:
            raise AssertionError(f"unexpected command: {argv}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        return subprocess.CompletedProcess(
            argv,
            reply.returncode,
            stdout=_as_bytes(reply.stdout),
            stderr=_as_bytes(reply.stderr),
        )

    def commands(self, executable: str) -> list[list[str]]:
        """argv (without the executable) of every call made to *executable*."""
        return [call.argv[1:] for call in self.calls if call.argv[0] == executable]


@pytest.fixture
def processes(monkeypatch: pytest.MonkeyPatch) -> FakeProcesses:
    fake = FakeProcesses()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


# ---------------------------------------------------------------------------
# Credential store fake
# ---------------------------------------------------------------------------

class MemoryCredentialStore(CredentialStore):
    """Dict-backed credential store with switchable failures."""

    def __init__(self) -> None:
        self.entries: dict[tuple[str, str], str] = {}
        self.fail_get = False
        self.fail_set = False
        self.fail_delete = False

    def get_password(self, service: str, account: str) -> str | None:
        if self.fail_get:
            raise CredentialStoreError("store unavailable")
        return self.entries.get((service, account))

    def set_password(self, service: str, account: str, token: str) -> None:
        if self.fail_set:
            raise CredentialStoreError("store is read-only")
        self.entries[(service, account)] = token

    def delete_password(self, service: str, account: str) -> None:
        if self.fail_delete:
            raise CredentialStoreError("store is read-only")
        self.entries.pop((service, account), None)


@pytest.fixture
def credential_store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


# ---------------------------------------------------------------------------
# Provider context
# ---------------------------------------------------------------------------

@pytest.fixture
def prompt_password() -> MagicMock:
    return MagicMock(return_value="correct horse battery staple")


@pytest.fixture
def provider_context(
    tmp_path: pathlib.Path,
    credential_store: MemoryCredentialStore,
    prompt_password: MagicMock,
) -> ProviderContext:
    return ProviderContext(
        cache_dir=tmp_path / "cache",
        credential_store=credential_store,
        prompt_password=prompt_password,
    )


@pytest.fixture
def repo_root() -> pathlib.Path:
    return REPO_ROOT
