"""Pydantic domain models shared by every provider.

An ``Item`` is what the menu shows; its ``fields`` are capability tags
declared at listing time. Field values are never stored on the item, they
are fetched lazily through ``Provider.read_field``.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class FieldKind(str, Enum):
    USERNAME = "username"
    PASSWORD = "password"
    TOTP = "totp"
    OTHER = "other"


class Action(str, Enum):
    SYNC = "sync"
    LOCK = "lock"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# ---------------------------------------------------------------------------
# Item model
# ---------------------------------------------------------------------------

_LABELS = {
    FieldKind.USERNAME: "Username",
    FieldKind.PASSWORD: "Password",
    FieldKind.TOTP: "TOTP",
}


class ItemField(BaseModel):
    """A retrievable attribute of an item.

    ``name`` is only meaningful for ``FieldKind.OTHER``, where it carries
    the backend-specific field name.
    """

    model_config = ConfigDict(frozen=True)

    kind: FieldKind
    name: str | None = None

    USERNAME: ClassVar[ItemField]
    PASSWORD: ClassVar[ItemField]
    TOTP: ClassVar[ItemField]

    @model_validator(mode="after")
    def _check_name(self) -> ItemField:
        if self.kind is FieldKind.OTHER and not self.name:
            raise ValueError("an 'other' field needs a name")
        if self.kind is not FieldKind.OTHER and self.name is not None:
            raise ValueError(f"a {self.kind.value!r} field takes no name")
        return self

    @classmethod
    def other(cls, name: str) -> ItemField:
        return cls(kind=FieldKind.OTHER, name=name)

    @property
    def label(self) -> str:
        if self.kind is FieldKind.OTHER:
            assert self.name is not None
            return self.name
        return _LABELS[self.kind]


ItemField.USERNAME = ItemField(kind=FieldKind.USERNAME)
ItemField.PASSWORD = ItemField(kind=FieldKind.PASSWORD)
ItemField.TOTP = ItemField(kind=FieldKind.TOTP)


class Item(BaseModel):
    id: str
    title: str
    fields: list[ItemField] = []

    def has_field(self, field: ItemField) -> bool:
        return field in self.fields

    def sort_key(self) -> tuple[str, str]:
        return (self.title, self.id)
