"""Pydantic records for the JSON emitted by the Bitwarden CLI.

Only the attributes rofi-vault reads are modelled; unknown keys are
ignored so newer CLI releases keep parsing.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Literal ``status`` value of an unlocked vault.
UNLOCKED = "unlocked"


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CustomFieldType(IntEnum):
    TEXT = 0
    HIDDEN = 1
    BOOLEAN = 2
    LINKED = 3


class Status(_Record):
    server_url: str | None = None
    last_sync: datetime | None = None
    user_email: str | None = None
    user_id: str | None = None
    status: str


class Folder(_Record):
    object: str = "folder"
    id: str | None = None  # None is the implicit root ("No Folder")
    name: str


class Uri(_Record):
    uri: str | None = None
    match: int | None = None


class Login(_Record):
    username: str | None = None
    password: str | None = None
    totp: str | None = None
    password_revision_date: datetime | None = None
    uris: list[Uri] = []


class CustomField(_Record):
    name: str | None = None
    value: str | None = None
    type: int = CustomFieldType.TEXT


class VaultItem(_Record):
    object: str = "item"
    id: str
    name: str
    folder_id: str | None = None
    organization_id: str | None = None
    type: int = 1
    notes: str | None = None
    favorite: bool = False
    login: Login | None = None
    fields: list[CustomField] = []
    collection_ids: list[str] = []
    revision_date: datetime | None = None
