"""Durable per-provider snapshot of the last successful item listing.

The cache is advisory: loading never raises, and a failed write is logged
and reported through the return value of :meth:`Cache.replace` while the
in-memory list keeps the newest data. Writes go through a temporary file
and ``os.replace`` so the file on disk is either the old or the new
snapshot, never a torn one.
"""

from __future__ import annotations

import json
import logging
import os
import pathlib
import tempfile

from pydantic import TypeAdapter, ValidationError

from rofi_vault.models import Item

logger = logging.getLogger(__name__)

_ITEMS = TypeAdapter(list[Item])


class Cache:
    """In-memory item list mirrored to a single JSON file.

    Parameters
    ----------
    path:
        Backing file. One file per provider instance; never share it.
    items:
        Initial in-memory contents.
    """

    def __init__(self, path: pathlib.Path, items: list[Item] | None = None) -> None:
        self._path = path
        self._items: list[Item] = list(items or [])

    @classmethod
    def try_load(cls, path: pathlib.Path) -> Cache:
        """Load the cache at *path*, degrading to empty on any failure."""
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No cache at %s yet", path)
            return cls(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read cache %s: %s", path, exc)
            return cls(path)

        try:
            items = _ITEMS.validate_python(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            logger.warning("Could not decode cache %s: %s", path, exc)
            return cls(path)

        logger.debug("Loaded %d cached items from %s", len(items), path)
        return cls(path, items)

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def items(self) -> list[Item]:
        return list(self._items)

    def replace(self, items: list[Item]) -> bool:
        """Replace the contents wholesale and overwrite the backing file.

        Returns ``True`` when the file was written. On failure the old file
        is left untouched and the in-memory list still holds *items*.
        """
        self._items = list(items)
        payload = _ITEMS.dump_json(self._items)

        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent,
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            logger.warning("Writing cache %s failed: %s", self._path, exc)
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False

        logger.debug("Cache %s updated (%d items)", self._path, len(self._items))
        return True
