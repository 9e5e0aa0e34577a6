"""Configuration loader for rofi-vault.

Loads settings from ``$XDG_CONFIG_HOME/rofi_vault/config.json`` (or
``config.yaml``) on top of built-in defaults. The file is read with a YAML
parser, so plain JSON works unchanged. Supports environment variable
overrides using the ROFI_VAULT_ prefix with double-underscore nesting
(e.g., ROFI_VAULT_ROFI__LINES=20).
"""

from __future__ import annotations

import os
import pathlib
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from rofi_vault.errors import ConfigError

APP_NAME = "rofi_vault"


# ---------------------------------------------------------------------------
# XDG base directories
# ---------------------------------------------------------------------------

def _xdg_dir(env_var: str, fallback: str) -> pathlib.Path:
    value = os.environ.get(env_var, "")
    # Relative XDG paths are invalid and must be ignored.
    if value and os.path.isabs(value):
        return pathlib.Path(value)
    return pathlib.Path.home() / fallback


def xdg_config_home() -> pathlib.Path:
    return _xdg_dir("XDG_CONFIG_HOME", ".config")


def xdg_cache_home() -> pathlib.Path:
    return _xdg_dir("XDG_CACHE_HOME", ".cache")


# ---------------------------------------------------------------------------
# Config sub-models
# ---------------------------------------------------------------------------

class ProviderEntry(BaseModel):
    type: str
    shortcut: str | None = None
    config: Any = Field(default_factory=dict)


class RofiSettings(BaseModel):
    executable: str = "rofi"
    lines: int = 15
    width: int | None = None
    matching: str = "fuzzy"
    sync_key: str = "Alt+r"
    lock_key: str = "Alt+l"


class CredentialStoreSettings(BaseModel):
    backend: str = "keyring"
    path: str | None = None
    password_env: str = "ROFI_VAULT_STORE_PASSWORD"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseModel):
    providers: dict[str, ProviderEntry] = Field(default_factory=dict)
    rofi: RofiSettings = Field(default_factory=RofiSettings)
    credential_store: CredentialStoreSettings = Field(default_factory=CredentialStoreSettings)
    cache_dir: str | None = None

    def resolved_cache_dir(self) -> pathlib.Path:
        if self.cache_dir:
            return pathlib.Path(self.cache_dir).expanduser()
        return xdg_cache_home() / APP_NAME


# ---------------------------------------------------------------------------
# Deep merge helper
# ---------------------------------------------------------------------------

def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into *base*, returning a new dict."""
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "ROFI_VAULT_"


def _coerce(value: str) -> Any:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


def _collect_env_overrides() -> dict[str, Any]:
    """Collect ROFI_VAULT_* env vars and build a nested dict.

    Double-underscore separates nesting levels.
    Example: ROFI_VAULT_ROFI__LINES=20
    becomes  {"rofi": {"lines": 20}}
    """
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX):
            continue
        parts = key[len(_ENV_PREFIX):].lower().split("__")
        current = overrides
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = _coerce(value)
    return overrides


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def default_config_path() -> pathlib.Path:
    """Return the first existing config file, or the JSON path if none exists."""
    base = xdg_config_home() / APP_NAME
    for name in ("config.json", "config.yaml", "config.yml"):
        candidate = base / name
        if candidate.exists():
            return candidate
    return base / "config.json"


def load_settings(config_path: pathlib.Path | None = None) -> Settings:
    """Load settings with layered precedence: defaults < file < env vars.

    Parameters
    ----------
    config_path:
        Path to a JSON or YAML config file. If ``None`` the XDG location is
        used; a missing file leaves the built-in defaults in place.

    Raises
    ------
    ConfigError
        If the file exists but cannot be parsed or validated.
    """
    base: dict[str, Any] = {}

    path = config_path if config_path is not None else default_config_path()
    if path.exists():
        try:
            with open(path, encoding="utf-8") as fh:
                file_data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"cannot read config {path}: {exc}") from exc
        if isinstance(file_data, dict):
            base = _deep_merge(base, file_data)
        elif file_data is not None:
            raise ConfigError(f"config {path} must contain a mapping")

    env_overrides = _collect_env_overrides()
    if env_overrides:
        base = _deep_merge(base, env_overrides)

    try:
        return Settings(**base)
    except ValidationError as exc:
        raise ConfigError(f"invalid config {path}: {exc}") from exc
