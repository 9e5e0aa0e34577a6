"""Tests that verify project scaffolding is correctly set up."""

import importlib
import pathlib

import tomllib
import yaml

from rofi_vault.config import Settings, load_settings

REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]


class TestProjectStructure:
    """Verify pyproject.toml, package, and example configuration exist and are valid."""

    def test_pyproject_toml_exists(self) -> None:
        assert (REPO_ROOT / "pyproject.toml").exists(), "pyproject.toml must exist"

    def test_pyproject_toml_has_project_name(self) -> None:
        data = tomllib.loads((REPO_ROOT / "pyproject.toml").read_text())
        assert data["project"]["name"] == "rofi-vault"

    def test_pyproject_toml_has_python_requires(self) -> None:
        data = tomllib.loads((REPO_ROOT / "pyproject.toml").read_text())
        assert "requires-python" in data["project"]
        assert "3.11" in data["project"]["requires-python"]

    def test_pyproject_toml_has_runtime_dependencies(self) -> None:
        data = tomllib.loads((REPO_ROOT / "pyproject.toml").read_text())
        deps = [d.split(">")[0].split("<")[0].split("=")[0].split("[")[0].strip()
                for d in data["project"]["dependencies"]]
        for req in ["pydantic", "pyyaml", "cryptography", "keyring"]:
            assert req in deps, f"Missing runtime dependency: {req}"

    def test_pyproject_toml_has_dev_dependencies(self) -> None:
        data = tomllib.loads((REPO_ROOT / "pyproject.toml").read_text())
        dev_deps_raw = data.get("dependency-groups", {}).get("dev", [])
        dev_deps = [d.split(">")[0].split("<")[0].split("=")[0].split("[")[0].strip()
                    for d in dev_deps_raw if isinstance(d, str)]
        for req in ["pytest", "ruff", "pyright"]:
            assert req in dev_deps, f"Missing dev dependency: {req}"

    def test_console_script(self) -> None:
        data = tomllib.loads((REPO_ROOT / "pyproject.toml").read_text())
        assert data["project"]["scripts"]["rofi-vault"] == "rofi_vault.__main__:main"

    def test_package_is_importable(self) -> None:
        mod = importlib.import_module("rofi_vault")
        assert hasattr(mod, "__version__")
        assert mod.__version__ == (REPO_ROOT / "VERSION").read_text().strip()

    def test_example_config_is_valid_yaml(self) -> None:
        data = yaml.safe_load((REPO_ROOT / "config" / "example.yaml").read_text())
        assert isinstance(data, dict)
        assert "providers" in data

    def test_example_config_loads(self, monkeypatch) -> None:
        for key in ("ROFI_VAULT_ROFI__LINES", "ROFI_VAULT_CACHE_DIR"):
            monkeypatch.delenv(key, raising=False)
        settings = load_settings(REPO_ROOT / "config" / "example.yaml")
        assert isinstance(settings, Settings)
        assert list(settings.providers) == ["bitwarden", "pass", "infra"]
        assert settings.providers["infra"].config["wrapper"][-1] == "--"
