"""Provider exposing string outputs of a Terraform state.

Runs ``terraform output`` in the configured working directory, optionally
behind a wrapper command (``aws-vault exec prod --``, ``op run --`` ...)
that supplies backend credentials.
"""

from __future__ import annotations

import logging
import pathlib

from pydantic import Field

from rofi_vault.errors import ProtocolError
from rofi_vault.models import Item, ItemField
from rofi_vault.providers.base import Provider, ProviderSettings
from rofi_vault.vault_process import VaultProcess

logger = logging.getLogger(__name__)


class TerraformProvider(Provider):
    """Items from ``terraform output -json``.

    Config:
        path:    Terraform working directory (required)
        wrapper: Command prefix run before ``terraform`` (default: none)
        cache:   Persist listings (default: false, outputs are cheap to list)
    """

    provider_type = "terraform"

    class Settings(ProviderSettings):
        cache: bool = False
        path: str
        wrapper: list[str] = Field(default_factory=list)

    settings: Settings

    @property
    def workdir(self) -> pathlib.Path:
        return pathlib.Path(self.settings.path).expanduser()

    def _terraform(self) -> VaultProcess:
        command = [*self.settings.wrapper, "terraform"]
        return VaultProcess(
            command[0],
            cwd=self.workdir,
            failure_signatures=(),
            command_prefix=command[1:],
        )

    def _fetch_items(self) -> list[Item]:
        outputs = self._terraform().run_json(["output", "-json"])
        if not isinstance(outputs, dict):
            raise ProtocolError("terraform output -json did not return an object")

        prefix = self.workdir.name
        items: list[Item] = []
        for name, output in sorted(outputs.items()):
            if not isinstance(output, dict) or not isinstance(output.get("value"), str):
                logger.debug("%s: skipping non-string output %s", self.name, name)
                continue
            items.append(Item(id=name, title=f"{prefix}/{name}", fields=[ItemField.PASSWORD]))
        return items

    def _read_field(self, item: Item, field: ItemField) -> str:
        return self._terraform().run_text(["output", "-raw", item.id])
