"""Fixtures for menu-level tests.

rofi itself is replaced by :class:`ScriptedMenu`: every ``RofiWindow.show``
call pops the next scripted response and records what would have been
displayed. Vault executables still go through the ``processes`` fake.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator
from unittest.mock import patch

import pytest

from rofi_vault.rofi import RofiResponse, RofiWindow


@dataclass
class Shown:
    args: list[str]
    options: list[str]

    @property
    def prompt(self) -> str:
        return self.args[self.args.index("-p") + 1]

    def option(self, flag: str) -> str:
        return self.args[self.args.index(flag) + 1]


class ScriptedMenu:
    def __init__(self) -> None:
        self.shown: list[Shown] = []
        self._responses: list[RofiResponse] = []

    def then(self, *responses: RofiResponse) -> ScriptedMenu:
        self._responses.extend(responses)
        return self

    def select(self, index: int) -> ScriptedMenu:
        return self.then(RofiResponse.entry(str(index)))

    def cancel(self) -> ScriptedMenu:
        return self.then(RofiResponse.cancel())

    def press(self, key: int) -> ScriptedMenu:
        return self.then(RofiResponse.custom_key(key))

    def __call__(self, window: RofiWindow, options: list[str]) -> RofiResponse:
        self.shown.append(Shown(args=window.to_args(), options=list(options)))
        if not self._responses:
            raise AssertionError(f"menu shown with no scripted response: {options}")
        return self._responses.pop(0)


@pytest.fixture
def menu() -> Iterator[ScriptedMenu]:
    scripted = ScriptedMenu()
    with patch.object(RofiWindow, "show", autospec=True, side_effect=scripted):
        yield scripted
