"""Subprocess client for command-line vault tools.

Runs one subcommand of a vault executable (``bw``, ``gpg``, ``terraform``)
and classifies the result. The session token, when there is one, travels
only through the environment so it never appears in process listings.

Every call is a single attempt; retry policy belongs to the caller.
"""

from __future__ import annotations

import json
import logging
import os
import pathlib
import subprocess
from dataclasses import dataclass
from typing import Any, Sequence

from rofi_vault.errors import (
    DecryptionFailedError,
    ProtocolError,
    UnexpectedResponseError,
    VaultEncodingError,
    VaultProcessError,
)

logger = logging.getLogger(__name__)

# Banner ``bw`` prints when the session key cannot decrypt the vault.
BW_DECRYPT_FAILURE = "Failed to decrypt."


@dataclass(frozen=True)
class VaultOutput:
    """Decoded result of a single vault subcommand."""

    stdout: str
    stderr: str
    returncode: int


class VaultProcess:
    """Invoke a vault executable and classify its output.

    Parameters
    ----------
    executable:
        Program name or path (e.g. ``"bw"``).
    token:
        Session token exported to the child as ``token_env``, if any.
    token_env:
        Environment variable name that carries the token.
    cwd:
        Working directory for the child process.
    failure_signatures:
        Output prefixes that mean the token could not decrypt the vault.
    command_prefix:
        Arguments placed before every subcommand, e.g. a wrapper's options.
    """

    def __init__(
        self,
        executable: str,
        token: str | None = None,
        token_env: str = "BW_SESSION",
        cwd: pathlib.Path | None = None,
        failure_signatures: Sequence[str] = (BW_DECRYPT_FAILURE,),
        command_prefix: Sequence[str] = (),
    ) -> None:
        self._executable = executable
        self._token = token
        self._token_env = token_env
        self._cwd = cwd
        self._failure_signatures = tuple(failure_signatures)
        self._command_prefix = tuple(command_prefix)

    def __repr__(self) -> str:
        return (
            f"VaultProcess(executable={self._executable!r}, "
            f"token={'<set>' if self._token else None})"
        )

    @property
    def executable(self) -> str:
        return self._executable

    def with_token(self, token: str | None) -> VaultProcess:
        """Return a client identical to this one but bound to *token*."""
        return VaultProcess(
            self._executable,
            token=token,
            token_env=self._token_env,
            cwd=self._cwd,
            failure_signatures=self._failure_signatures,
            command_prefix=self._command_prefix,
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self._token:
            env[self._token_env] = self._token
        else:
            env.pop(self._token_env, None)
        return env

    def run(self, args: Sequence[str], input: str | None = None) -> VaultOutput:
        """Run ``executable *args``, optionally feeding *input* on stdin."""
        argv = [self._executable, *self._command_prefix, *args]
        logger.debug("Running %s", " ".join(argv[:2 + len(self._command_prefix)]))
        try:
            proc = subprocess.run(
                argv,
                input=input.encode("utf-8") if input is not None else None,
                stdin=subprocess.DEVNULL if input is None else None,
                capture_output=True,
                env=self._env(),
                cwd=str(self._cwd) if self._cwd is not None else None,
            )
        except OSError as exc:
            raise VaultProcessError(f"could not run {self._executable}: {exc}") from exc

        try:
            stdout = proc.stdout.decode("utf-8")
            stderr = proc.stderr.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise VaultEncodingError(f"{self._executable} output is not valid UTF-8") from exc

        for stream in (stdout, stderr):
            if stream.startswith(self._failure_signatures):
                raise DecryptionFailedError()

        return VaultOutput(stdout=stdout, stderr=stderr, returncode=proc.returncode)

    def run_text(self, args: Sequence[str], input: str | None = None) -> str:
        """Run a subcommand that must succeed and return its stdout."""
        output = self.run(args, input=input)
        if output.returncode != 0:
            command = f"{self._executable} {args[0] if args else ''}".rstrip()
            raise UnexpectedResponseError(
                output.stderr or output.stdout,
                context=f"{command} exited with {output.returncode}",
            )
        return output.stdout

    def run_json(self, args: Sequence[str], input: str | None = None) -> Any:
        """Run a subcommand that must succeed and print JSON."""
        stdout = self.run_text(args, input=input)
        try:
            return json.loads(stdout)
        except ValueError as exc:
            raise ProtocolError(
                f"{self._executable} {args[0] if args else ''} did not return JSON", stdout,
            ) from exc
