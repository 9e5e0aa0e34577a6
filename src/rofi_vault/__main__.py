"""rofi-vault -- entry point.

Usage::

    python -m rofi_vault [--config PATH] [--provider NAME] [--refresh] [-v]

Startup sequence:
    1. Parse CLI arguments
    2. Load configuration (JSON or YAML, plus ROFI_VAULT_* overrides)
    3. Build the credential store and every configured provider
    4. Run the menu loop
    5. Print the selected secret on stdout (no trailing newline)

Logging goes to stderr so stdout carries nothing but the secret.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rofi_vault import __version__
from rofi_vault.errors import RofiVaultError, SelectionCancelled

if TYPE_CHECKING:
    from rofi_vault.app import App

logger = logging.getLogger("rofi_vault")


# ---------------------------------------------------------------------------
# Integration seams -- module-level names so tests can patch them.
# ---------------------------------------------------------------------------


def create_app(config_path: str | None) -> App:
    """Load settings and build the App."""
    from rofi_vault.app import App

    return App.from_config(Path(config_path) if config_path else None)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv:
        Argument list.  Defaults to ``sys.argv[1:]`` when ``None``.
    """
    parser = argparse.ArgumentParser(
        prog="rofi-vault",
        description="Pick a credential from your secret stores with rofi",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the JSON/YAML configuration file",
    )
    parser.add_argument(
        "--provider",
        type=str,
        default=None,
        help="Provider to open first (default: first configured)",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        default=False,
        help="Ignore cached listings and query the backends",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    """Run one menu session and return the process exit status."""
    args = parse_args(argv)
    logging.getLogger().setLevel(logging.DEBUG if args.verbose else logging.INFO)

    try:
        app = create_app(args.config)
        secret = app.show(provider_name=args.provider, refresh=args.refresh)
    except SelectionCancelled:
        secret = None
    except RofiVaultError as exc:
        logger.error("%s", exc)
        return 1

    if secret is None:
        logger.info("Bye.")
        return 0

    sys.stdout.write(secret)
    sys.stdout.flush()
    return 0


# ---------------------------------------------------------------------------
# Script entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse CLI args and run the menu."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        sys.exit(run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
