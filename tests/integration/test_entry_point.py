"""Integration tests for the command-line entry point (__main__.py).

``create_app`` is patched for the wiring tests; the end-to-end test builds
a real App from a config file with only rofi and gpg faked.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from rofi_vault import __version__
from rofi_vault.__main__ import main, parse_args, run
from rofi_vault.errors import ConfigError, DecryptionFailedError, SelectionCancelled


@pytest.fixture()
def fake_app() -> MagicMock:
    app = MagicMock()
    app.show.return_value = "s3cret"
    return app


@pytest.fixture()
def patched_create_app(fake_app: MagicMock):
    with patch("rofi_vault.__main__.create_app", return_value=fake_app) as mock_create:
        yield mock_create


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args([])
        assert args.config is None
        assert args.provider is None
        assert args.refresh is False
        assert args.verbose is False

    def test_all_flags(self) -> None:
        args = parse_args(["--config", "/tmp/c.yaml", "--provider", "pass", "--refresh", "-v"])
        assert args.config == "/tmp/c.yaml"
        assert args.provider == "pass"
        assert args.refresh is True
        assert args.verbose is True

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            parse_args(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out


# ---------------------------------------------------------------------------
# run()
# ---------------------------------------------------------------------------

class TestRun:
    def test_secret_written_without_newline(
        self, patched_create_app, fake_app, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run(["--provider", "bw", "--refresh"]) == 0
        assert capsys.readouterr().out == "s3cret"
        fake_app.show.assert_called_once_with(provider_name="bw", refresh=True)

    def test_config_path_forwarded(self, patched_create_app) -> None:
        run(["--config", "/etc/rofi_vault.yaml"])
        patched_create_app.assert_called_once_with("/etc/rofi_vault.yaml")

    def test_nothing_selected(
        self, patched_create_app, fake_app, capsys: pytest.CaptureFixture[str]
    ) -> None:
        fake_app.show.return_value = None
        assert run([]) == 0
        assert capsys.readouterr().out == ""

    def test_cancelled_password_prompt(
        self, patched_create_app, fake_app, capsys: pytest.CaptureFixture[str]
    ) -> None:
        fake_app.show.side_effect = SelectionCancelled("selection was cancelled")
        assert run([]) == 0
        assert capsys.readouterr().out == ""

    def test_vault_error_exits_nonzero(
        self, patched_create_app, fake_app, capsys: pytest.CaptureFixture[str],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        fake_app.show.side_effect = DecryptionFailedError()
        with caplog.at_level(logging.ERROR):
            assert run([]) == 1
        assert capsys.readouterr().out == ""
        assert "failed to decrypt" in caplog.text

    def test_config_error_exits_nonzero(self) -> None:
        with patch("rofi_vault.__main__.create_app", side_effect=ConfigError("bad config")):
            assert run([]) == 1

    def test_verbose_sets_debug(self, patched_create_app) -> None:
        root = logging.getLogger()
        previous = root.level
        try:
            run(["-v"])
            assert root.level == logging.DEBUG
            run([])
            assert root.level == logging.INFO
        finally:
            root.setLevel(previous)


class TestMain:
    def test_exit_status(self, patched_create_app) -> None:
        with patch("sys.argv", ["rofi-vault"]):
            with pytest.raises(SystemExit) as excinfo:
                main()
        assert excinfo.value.code == 0

    def test_keyboard_interrupt(self) -> None:
        with patch("rofi_vault.__main__.run", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as excinfo:
                main()
        assert excinfo.value.code == 130


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------

class TestEndToEnd:
    def test_password_store_selection(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        processes,
        menu,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        store = tmp_path / "store"
        (store / "web").mkdir(parents=True)
        (store / "web" / "forum.gpg").write_bytes(b"ciphertext")
        config = tmp_path / "config.json"
        config.write_text(json.dumps({
            "providers": {"pass": {"type": "password_store", "config": {"path": str(store)}}},
            "cache_dir": str(tmp_path / "cache"),
        }))
        monkeypatch.delenv("ROFI_VAULT_CACHE_DIR", raising=False)

        processes.reply(
            "gpg", "--quiet", "--batch", "--decrypt", str(store / "web" / "forum.gpg"),
            stdout="forum-password\nuser: me\n",
        )
        menu.select(0).select(0)

        assert run(["--config", str(config)]) == 0
        assert capsys.readouterr().out == "forum-password"
        assert (tmp_path / "cache" / "pass.json").exists()
