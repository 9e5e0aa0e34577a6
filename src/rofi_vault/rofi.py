"""Client for rofi running in dmenu mode.

Candidates are written newline-joined to rofi's stdin; the exit status
encodes the outcome:

* ``0``      -- an entry was selected (printed on stdout)
* ``1``      -- the user cancelled
* ``10..28`` -- custom keybinding ``code - 9`` was pressed
* anything else is a protocol error
"""

from __future__ import annotations

import enum
import logging
import subprocess
from dataclasses import dataclass

from rofi_vault.errors import RofiError, SelectionCancelled

logger = logging.getLogger(__name__)

_EXIT_SELECTED = 0
_EXIT_CANCELLED = 1
_EXIT_CUSTOM_FIRST = 10
_EXIT_CUSTOM_LAST = 28


class ResponseKind(str, enum.Enum):
    ENTRY = "entry"
    CANCEL = "cancel"
    CUSTOM_KEY = "custom_key"


@dataclass(frozen=True)
class RofiResponse:
    kind: ResponseKind
    value: str | None = None
    key: int | None = None

    @classmethod
    def entry(cls, value: str) -> RofiResponse:
        return cls(ResponseKind.ENTRY, value=value)

    @classmethod
    def cancel(cls) -> RofiResponse:
        return cls(ResponseKind.CANCEL)

    @classmethod
    def custom_key(cls, key: int) -> RofiResponse:
        return cls(ResponseKind.CUSTOM_KEY, key=key)

    def expect_entry(self) -> str:
        """Return the selected entry, or raise if there was none."""
        if self.kind is ResponseKind.ENTRY:
            assert self.value is not None
            return self.value
        if self.kind is ResponseKind.CANCEL:
            raise SelectionCancelled("selection was cancelled")
        raise RofiError(f"expected an entry, got custom key {self.key}")


class RofiWindow:
    """Builder for a single rofi invocation.

    Every setter returns the window so calls can be chained::

        RofiWindow("Select an entry").lines(15).kb_custom(1, "Alt+r").show(entries)
    """

    def __init__(self, prompt: str) -> None:
        self._prompt = prompt
        self._executable = "rofi"
        self._message: str | None = None
        self._lines: int | None = None
        self._width: int | None = None
        self._password = False
        self._extra_args: list[str] = []

    def executable(self, executable: str) -> RofiWindow:
        self._executable = executable
        return self

    def message(self, message: str) -> RofiWindow:
        self._message = message
        return self

    def lines(self, lines: int) -> RofiWindow:
        self._lines = lines
        return self

    def width(self, percent: int) -> RofiWindow:
        """Window width as a percentage of the screen."""
        self._width = percent
        return self

    def password(self, password: bool = True) -> RofiWindow:
        self._password = password
        return self

    def matching(self, algorithm: str) -> RofiWindow:
        self._extra_args.extend(["-matching", algorithm])
        return self

    def kb_custom(self, index: int, key: str) -> RofiWindow:
        if not 1 <= index <= _EXIT_CUSTOM_LAST - _EXIT_CUSTOM_FIRST + 1:
            raise ValueError(f"rofi supports custom keys 1..19, not {index}")
        self._extra_args.extend([f"-kb-custom-{index}", key])
        return self

    def format(self, fmt: str) -> RofiWindow:
        self._extra_args.extend(["-format", fmt])
        return self

    def add_args(self, *args: str) -> RofiWindow:
        self._extra_args.extend(args)
        return self

    def to_args(self) -> list[str]:
        args = [self._executable, "-dmenu", "-p", self._prompt]
        if self._message is not None:
            args.extend(["-mesg", self._message])
        if self._width is not None:
            # rofi 1.7 dropped -width; the theme property replaces it.
            args.extend(["-theme-str", f"window {{width: {self._width}%;}}"])
        if self._lines is not None:
            args.extend(["-l", str(self._lines)])
        if self._password:
            args.append("-password")
        args.extend(self._extra_args)
        return args

    def show(self, options: list[str]) -> RofiResponse:
        """Run rofi with *options* and decode its answer."""
        try:
            proc = subprocess.run(
                self.to_args(),
                input="\n".join(options).encode("utf-8"),
                stdout=subprocess.PIPE,
            )
        except OSError as exc:
            raise RofiError(f"could not run {self._executable}: {exc}") from exc

        code = proc.returncode
        if _EXIT_CUSTOM_FIRST <= code <= _EXIT_CUSTOM_LAST:
            return RofiResponse.custom_key(code - 9)
        if code == _EXIT_CANCELLED:
            return RofiResponse.cancel()
        if code != _EXIT_SELECTED:
            raise RofiError(f"unexpected exit code: {code}")

        try:
            selection = proc.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RofiError("rofi output is not valid UTF-8") from exc
        return RofiResponse.entry(selection.rstrip("\n"))


def prompt_password(prompt: str = "Master password", executable: str = "rofi") -> str:
    """Ask for a secret in a masked, list-less rofi prompt."""
    return (
        RofiWindow(prompt)
        .executable(executable)
        .password(True)
        .lines(0)
        .show([])
        .expect_entry()
    )
